"""
Uniqueness Ledger — claimed unique names and unique-class tags.

One ledger belongs to one fleet-building session. It is created empty with
the session and passed explicitly to everything that reads or claims from
it. There is no process-wide ledger.

INVARIANT: a token enters the ledger once, the first time a record carrying
it is committed. Adding more items never removes a token. Removal happens
only by rebuilding the ledger from the fleet that remains.
"""

from collections.abc import Iterable, Iterator

from fleetforge.models.fleet import FleetState


class UniquenessLedger:
    """
    Set of claimed tokens, remembering which record claimed each first.

    The claimant lets callers tell "this tag was claimed by me" apart from
    "this tag was claimed by something else".
    """

    __slots__ = ("_claims",)

    def __init__(self) -> None:
        self._claims: dict[str, str | None] = {}

    def __contains__(self, token: object) -> bool:
        return token in self._claims

    def __len__(self) -> int:
        return len(self._claims)

    def __iter__(self) -> Iterator[str]:
        return iter(self._claims)

    def __repr__(self) -> str:
        return f"<UniquenessLedger({sorted(self._claims)})>"

    @property
    def claimed(self) -> frozenset[str]:
        """Snapshot of every claimed token."""
        return frozenset(self._claims)

    def is_claimed(self, token: str) -> bool:
        return token in self._claims

    def claimed_by(self, token: str) -> str | None:
        """Record id of the first claimant, or None if unclaimed or anonymous."""
        return self._claims.get(token)

    def claim(self, token: str, claimant: str | None = None) -> None:
        """
        Claim a token. Claiming an already-claimed token is a no-op.

        Args:
            token: Unique name or unique-class tag
            claimant: Catalog record id of the claiming record
        """
        if token not in self._claims:
            self._claims[token] = claimant

    def claim_all(self, tokens: Iterable[str], claimant: str | None = None) -> None:
        for token in tokens:
            self.claim(token, claimant)


def rebuild_ledger(fleet: FleetState) -> UniquenessLedger:
    """
    Recompute the ledger from scratch by replaying the fleet.

    Order: ships, each ship's upgrades, squadrons. The first carrier of a
    token in that order becomes its claimant.
    """
    ledger = UniquenessLedger()

    for ship in fleet.ships:
        ledger.claim_all(ship.record.unique_tokens, ship.record.id)
        for upgrade in ship.upgrades:
            ledger.claim_all(upgrade.record.unique_tokens, upgrade.record.id)

    for squadron in fleet.squadrons:
        ledger.claim_all(squadron.record.unique_tokens, squadron.record.id)

    return ledger
