import pytest

from fleetforge.models.availability import (
    AvailabilityReason,
    AvailabilityStatus,
    PointWindow,
    UpgradeSlotContext,
)
from fleetforge.models.catalog import CatalogKind, UpgradeRecord, UpgradeRestrictions
from fleetforge.models.failure import EntryNotFoundError
from fleetforge.models.fleet import (
    FleetState,
    ObjectiveEntry,
    ShipEntry,
    SquadronEntry,
    UpgradeEntry,
)
from fleetforge.models.ledger import UniquenessLedger, rebuild_ledger
from fleetforge.services.availability import (
    available_slot_types,
    bound_shiptype_matches,
    derive_slot_context,
    evaluate_candidate,
    is_available,
)


def evaluate_upgrade(
    find, fleet: FleetState, ledger: UniquenessLedger, ship: ShipEntry, name: str
):
    """Evaluate a named upgrade for a ship, with the slot context derived from the ship."""
    upgrade = find(CatalogKind.UPGRADE, name)
    return evaluate_candidate(
        upgrade, fleet, ledger, slot=derive_slot_context(ship, upgrade.upgrade_type)
    )


class TestSharedRules:
    def test_faction_mismatch(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger
    ) -> None:
        isd = find(CatalogKind.SHIP, "Imperial I-class Star Destroyer")
        result = evaluate_candidate(isd, rebel_fleet, ledger)

        assert result.status is AvailabilityStatus.ILLEGAL
        assert result.reason is AvailabilityReason.FACTION_MISMATCH

    def test_wildcard_faction_allowed(
        self, find, empire_fleet: FleetState, ledger: UniquenessLedger, add_ship
    ) -> None:
        ship = add_ship(empire_fleet, "Imperial I-class Star Destroyer")
        result = evaluate_upgrade(find, empire_fleet, ledger, ship, "Engine Retrofit")

        assert result.is_legal

    def test_point_window_is_inclusive(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger
    ) -> None:
        xwing = find(CatalogKind.SQUADRON, "X-wing Squadron")

        assert is_available(xwing, rebel_fleet, ledger, PointWindow(13, 13))
        result = evaluate_candidate(xwing, rebel_fleet, ledger, PointWindow(0, 12))
        assert result.reason is AvailabilityReason.OUTSIDE_POINT_WINDOW

    def test_faction_reported_before_points(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger
    ) -> None:
        """The first failing rule is the one reported."""
        tie = find(CatalogKind.SQUADRON, "TIE Fighter Squadron")
        result = evaluate_candidate(tie, rebel_fleet, ledger, PointWindow(50, 60))

        assert result.reason is AvailabilityReason.FACTION_MISMATCH

    def test_invalid_window_rejected(self) -> None:
        with pytest.raises(ValueError):
            PointWindow(min_points=10, max_points=5)
        with pytest.raises(ValueError):
            PointWindow(min_points=-1)

    def test_legal_result_has_no_reason(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger
    ) -> None:
        result = evaluate_candidate(find(CatalogKind.SHIP, "CR90 Corvette A"), rebel_fleet, ledger)

        assert result.is_legal
        assert result.reason is None
        assert result.message == ""


class TestUniqueness:
    def test_unique_squadron_blocked_once_fielded(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger
    ) -> None:
        """A unique squadron is legal once, then already selected."""
        pride = find(CatalogKind.SQUADRON, "Dodonna's Pride")
        assert evaluate_candidate(pride, rebel_fleet, ledger).is_legal

        rebel_fleet.squadrons.append(SquadronEntry(record=pride))
        ledger.claim_all(pride.unique_tokens, pride.id)

        assert "Dodonna's Pride" in ledger
        result = evaluate_candidate(pride, rebel_fleet, ledger)
        assert result.reason is AvailabilityReason.ALREADY_SELECTED
        assert result.message == "already selected"

    def test_shared_unique_class_greys_other_ace(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger
    ) -> None:
        """A different squadron sharing a claimed class tag is unavailable."""
        tycho = find(CatalogKind.SQUADRON, "Tycho Celchu")
        keyan = find(CatalogKind.SQUADRON, "Keyan Farlander")
        rebel_fleet.squadrons.append(SquadronEntry(record=tycho))
        ledger.claim_all(tycho.unique_tokens, tycho.id)

        result = evaluate_candidate(keyan, rebel_fleet, ledger)

        assert not result.is_legal
        assert result.reason is AvailabilityReason.ALREADY_SELECTED

    def test_unique_name_present_in_fleet_without_claim(
        self, find, empire_fleet: FleetState, ledger: UniquenessLedger, add_ship
    ) -> None:
        """Presence in the fleet alone blocks a unique ship."""
        add_ship(empire_fleet, "Executor I-class Star Dreadnought")
        executor = find(CatalogKind.SHIP, "Executor I-class Star Dreadnought")

        result = evaluate_candidate(executor, empire_fleet, ledger)
        assert result.reason is AvailabilityReason.ALREADY_SELECTED

    def test_non_unique_never_blocked(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger
    ) -> None:
        xwing = find(CatalogKind.SQUADRON, "X-wing Squadron")
        rebel_fleet.squadrons.append(SquadronEntry(record=xwing, count=4))

        assert evaluate_candidate(xwing, rebel_fleet, ledger).is_legal

    def test_unique_upgrade_blocked_fleet_wide(
        self, find, rebel_fleet: FleetState, add_ship, attach
    ) -> None:
        first = add_ship(rebel_fleet, "CR90 Corvette A")
        second = add_ship(rebel_fleet, "CR90 Corvette B")
        attach(first, "Lando Calrissian")
        ledger = rebuild_ledger(rebel_fleet)

        result = evaluate_upgrade(find, rebel_fleet, ledger, second, "Lando Calrissian")
        assert result.reason is AvailabilityReason.ALREADY_SELECTED

    def test_objective_already_selected(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger
    ) -> None:
        wanted = find(CatalogKind.OBJECTIVE, "Most Wanted")
        strike = find(CatalogKind.OBJECTIVE, "Precision Strike")
        rebel_fleet.objectives.append(ObjectiveEntry(record=wanted))

        assert evaluate_candidate(wanted, rebel_fleet, ledger).reason is (
            AvailabilityReason.ALREADY_SELECTED
        )
        assert evaluate_candidate(strike, rebel_fleet, ledger).is_legal


class TestUpgradeRules:
    def test_already_on_ship(self, find, rebel_fleet: FleetState, add_ship, attach) -> None:
        ship = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        attach(ship, "Gunnery Team")
        ledger = rebuild_ledger(rebel_fleet)

        result = evaluate_upgrade(find, rebel_fleet, ledger, ship, "Gunnery Team")
        assert result.reason is AvailabilityReason.ALREADY_ON_SHIP

    def test_commander_exclusivity_is_fleet_wide(
        self, find, rebel_fleet: FleetState, add_ship, attach
    ) -> None:
        flagship = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        escort = add_ship(rebel_fleet, "CR90 Corvette A")
        attach(flagship, "Admiral Ackbar")
        ledger = rebuild_ledger(rebel_fleet)

        result = evaluate_upgrade(find, rebel_fleet, ledger, escort, "Mon Mothma")
        assert result.reason is AvailabilityReason.COMMANDER_EXCLUSIVITY

    def test_second_modification_excluded(
        self, find, rebel_fleet: FleetState, add_ship, attach
    ) -> None:
        ship = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        attach(ship, "Engine Retrofit")
        ledger = rebuild_ledger(rebel_fleet)

        result = evaluate_upgrade(find, rebel_fleet, ledger, ship, "Hull Plating")

        assert result.status is AvailabilityStatus.ILLEGAL
        assert result.reason is AvailabilityReason.MODIFICATION_EXCLUSIVITY

    def test_modification_on_other_ship_is_fine(
        self, find, rebel_fleet: FleetState, add_ship, attach
    ) -> None:
        first = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        second = add_ship(rebel_fleet, "CR90 Corvette B")
        attach(first, "Engine Retrofit")
        ledger = rebuild_ledger(rebel_fleet)

        assert evaluate_upgrade(find, rebel_fleet, ledger, second, "Engine Retrofit").is_legal

    def test_title_for_other_chassis_mismatch(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger, add_ship
    ) -> None:
        ship = add_ship(rebel_fleet, "CR90 Corvette B")

        result = evaluate_upgrade(find, rebel_fleet, ledger, ship, "Jaina's Light")
        assert result.reason is AvailabilityReason.BOUND_SHIPTYPE_MISMATCH

    def test_title_skips_placement_restrictions(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger, add_ship
    ) -> None:
        """A title on its chassis is legal even though its size and trait lists fail."""
        ship = add_ship(rebel_fleet, "CR90 Corvette A")
        slot = UpgradeSlotContext(
            ship_entry_id=ship.entry_id,
            upgrade_type="title",
            disqualified_types=frozenset({"title"}),
        )

        result = evaluate_candidate(
            find(CatalogKind.UPGRADE, "Jaina's Light"), rebel_fleet, ledger, slot=slot
        )
        assert result.is_legal

    def test_bound_shiptype_for_non_title(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger, add_ship
    ) -> None:
        mc80 = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        cr90 = add_ship(rebel_fleet, "CR90 Corvette A")

        assert evaluate_upgrade(find, rebel_fleet, ledger, mc80, "MC80 Refit").is_legal
        result = evaluate_upgrade(find, rebel_fleet, ledger, cr90, "MC80 Refit")
        assert result.reason is AvailabilityReason.BOUND_SHIPTYPE_MISMATCH

    def test_bound_shiptype_helper(self, find) -> None:
        mc80 = find(CatalogKind.SHIP, "MC80 Assault Cruiser")
        refit = find(CatalogKind.UPGRADE, "MC80 Refit")
        title = find(CatalogKind.UPGRADE, "Jaina's Light")

        assert bound_shiptype_matches(refit, mc80)
        assert not bound_shiptype_matches(title, mc80)

    def test_bound_shiptype_ignores_model_name(self, find) -> None:
        """Only the chassis counts, never the ship's model name."""
        mc80 = find(CatalogKind.SHIP, "MC80 Assault Cruiser")
        by_name = UpgradeRecord(
            id="assault-refit",
            name="Assault Refit",
            upgrade_type="offensive-retrofit",
            bound_shiptype="MC80 Assault Cruiser",
        )

        assert not bound_shiptype_matches(by_name, mc80)

    def test_slot_marked_disqualified(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger, add_ship
    ) -> None:
        ship = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        slot = UpgradeSlotContext(
            ship_entry_id=ship.entry_id,
            upgrade_type="weapons-team",
            disqualified_types=frozenset({"weapons-team"}),
        )

        result = evaluate_candidate(
            find(CatalogKind.UPGRADE, "Gunnery Team"), rebel_fleet, ledger, slot=slot
        )
        assert result.reason is AvailabilityReason.TYPE_DISQUALIFIED

    def test_slot_marked_disabled(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger, add_ship
    ) -> None:
        ship = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        slot = UpgradeSlotContext(
            ship_entry_id=ship.entry_id,
            upgrade_type="weapons-team",
            disabled_types=frozenset({"weapons-team"}),
        )

        result = evaluate_candidate(
            find(CatalogKind.UPGRADE, "Gunnery Team"), rebel_fleet, ledger, slot=slot
        )
        assert result.status is AvailabilityStatus.ILLEGAL
        assert result.reason is AvailabilityReason.TYPE_DISABLED

    def test_attached_upgrade_disables_type(
        self, find, rebel_fleet: FleetState, add_ship, attach
    ) -> None:
        ship = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        attach(ship, "Strategic Adviser")
        ledger = rebuild_ledger(rebel_fleet)

        result = evaluate_upgrade(find, rebel_fleet, ledger, ship, "Admiral Ackbar")
        assert result.reason is AvailabilityReason.TYPE_DISABLED

    def test_attached_upgrade_disqualifies_type(
        self, find, rebel_fleet: FleetState, add_ship, attach
    ) -> None:
        ship = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        attach(ship, "Ordnance Experts")
        ledger = rebuild_ledger(rebel_fleet)

        result = evaluate_upgrade(find, rebel_fleet, ledger, ship, "Strategic Adviser")
        assert result.reason is AvailabilityReason.TYPE_DISQUALIFIED

    def test_candidate_disqualifies_attached_type(
        self, find, rebel_fleet: FleetState, add_ship, attach
    ) -> None:
        ship = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        attach(ship, "Strategic Adviser")
        ledger = rebuild_ledger(rebel_fleet)

        result = evaluate_upgrade(find, rebel_fleet, ledger, ship, "Ordnance Experts")
        assert result.reason is AvailabilityReason.TYPE_DISQUALIFIED

    def test_size_whitelist_excludes_small_ship(
        self,
        find,
        rebel_fleet: FleetState,
        empire_fleet: FleetState,
        ledger: UniquenessLedger,
        add_ship,
    ) -> None:
        small = add_ship(rebel_fleet, "CR90 Corvette A")
        huge = add_ship(empire_fleet, "Executor I-class Star Dreadnought")

        result = evaluate_upgrade(find, rebel_fleet, ledger, small, "Gunnery Team")
        assert result.reason is AvailabilityReason.SIZE_RESTRICTED
        assert evaluate_upgrade(find, empire_fleet, ledger, huge, "Gunnery Team").is_legal

    def test_trait_whitelist(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger, add_ship
    ) -> None:
        mc80 = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        cr90 = add_ship(rebel_fleet, "CR90 Corvette A")

        assert evaluate_upgrade(find, rebel_fleet, ledger, mc80, "Slicer Tools").is_legal
        result = evaluate_upgrade(find, rebel_fleet, ledger, cr90, "Slicer Tools")
        assert result.reason is AvailabilityReason.TRAIT_RESTRICTED

    def test_unique_class_claimed_by_other_upgrade_greys(
        self, find, rebel_fleet: FleetState, add_ship, attach
    ) -> None:
        first = add_ship(rebel_fleet, "CR90 Corvette A")
        second = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        attach(first, "Lando Calrissian")
        ledger = rebuild_ledger(rebel_fleet)

        result = evaluate_upgrade(find, rebel_fleet, ledger, second, "Lando's Gambit")

        assert result.status is AvailabilityStatus.GREYED
        assert result.reason is AvailabilityReason.UNIQUE_CLASS_CLAIMED
        assert not result.is_legal

    def test_original_claimant_stays_legal(
        self, find, rebel_fleet: FleetState, add_ship, attach
    ) -> None:
        """Re-selecting the upgrade that claimed a class tag is allowed."""
        first = add_ship(rebel_fleet, "CR90 Corvette A")
        second = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        attach(first, "Lando's Gambit")
        ledger = rebuild_ledger(rebel_fleet)

        assert evaluate_upgrade(find, rebel_fleet, ledger, second, "Lando's Gambit").is_legal

    def test_upgrade_needs_slot_context(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger
    ) -> None:
        with pytest.raises(ValueError):
            evaluate_candidate(find(CatalogKind.UPGRADE, "Gunnery Team"), rebel_fleet, ledger)

    def test_slot_for_missing_ship(
        self, find, rebel_fleet: FleetState, ledger: UniquenessLedger
    ) -> None:
        slot = UpgradeSlotContext(ship_entry_id="missing", upgrade_type="weapons-team")

        with pytest.raises(EntryNotFoundError):
            evaluate_candidate(
                find(CatalogKind.UPGRADE, "Gunnery Team"), rebel_fleet, ledger, slot=slot
            )


class TestEvaluationIsPure:
    def test_evaluate_does_not_mutate(
        self, find, rebel_fleet: FleetState, add_ship, attach
    ) -> None:
        ship = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        attach(ship, "Admiral Ackbar")
        ledger = rebuild_ledger(rebel_fleet)
        claimed_before = ledger.claimed
        upgrades_before = ship.upgrade_names()

        for name in ("Mon Mothma", "Gunnery Team", "Lando's Gambit", "Jaina's Light"):
            evaluate_upgrade(find, rebel_fleet, ledger, ship, name)

        assert ledger.claimed == claimed_before
        assert ship.upgrade_names() == upgrades_before


class TestSlotHelpers:
    def test_derive_slot_context_collects_attached_lists(
        self, rebel_fleet: FleetState, add_ship, attach
    ) -> None:
        ship = add_ship(rebel_fleet, "MC80 Assault Cruiser")
        attach(ship, "Strategic Adviser")
        attach(ship, "Ordnance Experts")

        slot = derive_slot_context(ship, "commander")

        assert slot.ship_entry_id == ship.entry_id
        assert slot.upgrade_type == "commander"
        assert slot.disabled_types == frozenset({"commander"})
        assert slot.disqualified_types == frozenset({"officer"})

    def test_enabled_slots_are_appended(self, rebel_fleet: FleetState, add_ship, attach) -> None:
        ship = add_ship(rebel_fleet, "CR90 Corvette A")
        attach(ship, "Expanded Hangar Bay")

        assert available_slot_types(ship) == [
            "officer",
            "weapons-team",
            "offensive-retrofit",
            "title",
            "fighter-coordination",
        ]


def stacked_upgrade(**fields) -> UpgradeRecord:
    """An upgrade built to fail several rules at once."""
    fields.setdefault("upgrade_type", "officer")
    return UpgradeRecord(id="stacked", name="Stacked Upgrade", **fields)


class TestRuleOrder:
    """When several rules fail, the earliest one in evaluation order is reported."""

    @pytest.fixture
    def ship(self, rebel_fleet: FleetState, add_ship) -> ShipEntry:
        return add_ship(rebel_fleet, "MC80 Assault Cruiser")

    def evaluate(
        self,
        record: UpgradeRecord,
        fleet: FleetState,
        ship: ShipEntry,
        disqualified: frozenset[str] = frozenset(),
    ):
        slot = UpgradeSlotContext(
            ship_entry_id=ship.entry_id,
            upgrade_type=record.upgrade_type,
            disqualified_types=disqualified,
        )
        return evaluate_candidate(record, fleet, rebuild_ledger(fleet), slot=slot)

    def test_uniqueness_before_already_on_ship(
        self, find, rebel_fleet: FleetState, ship: ShipEntry, attach
    ) -> None:
        attach(ship, "Lando Calrissian")
        lando = find(CatalogKind.UPGRADE, "Lando Calrissian")

        result = self.evaluate(lando, rebel_fleet, ship)

        assert result.reason is AvailabilityReason.ALREADY_SELECTED

    def test_already_on_ship_before_commander_and_binding(
        self, rebel_fleet: FleetState, ship: ShipEntry
    ) -> None:
        record = stacked_upgrade(
            upgrade_type="commander", modification=True, bound_shiptype="cr90a"
        )
        ship.upgrades.append(UpgradeEntry(record=record))

        result = self.evaluate(record, rebel_fleet, ship)

        assert result.reason is AvailabilityReason.ALREADY_ON_SHIP

    def test_commander_before_modification(
        self, rebel_fleet: FleetState, ship: ShipEntry, attach
    ) -> None:
        attach(ship, "Admiral Ackbar")
        attach(ship, "Engine Retrofit")
        record = stacked_upgrade(upgrade_type="commander", modification=True)

        result = self.evaluate(record, rebel_fleet, ship)

        assert result.reason is AvailabilityReason.COMMANDER_EXCLUSIVITY

    def test_modification_before_binding(
        self, rebel_fleet: FleetState, ship: ShipEntry, attach
    ) -> None:
        attach(ship, "Engine Retrofit")
        record = stacked_upgrade(modification=True, bound_shiptype="cr90a")

        result = self.evaluate(record, rebel_fleet, ship)

        assert result.reason is AvailabilityReason.MODIFICATION_EXCLUSIVITY

    def test_binding_before_type_exclusion(self, rebel_fleet: FleetState, ship: ShipEntry) -> None:
        record = stacked_upgrade(bound_shiptype="cr90a")

        result = self.evaluate(record, rebel_fleet, ship, disqualified=frozenset({"officer"}))

        assert result.reason is AvailabilityReason.BOUND_SHIPTYPE_MISMATCH

    def test_type_exclusion_before_size(self, rebel_fleet: FleetState, ship: ShipEntry) -> None:
        record = stacked_upgrade(restrictions=UpgradeRestrictions(size=("small",)))

        result = self.evaluate(record, rebel_fleet, ship, disqualified=frozenset({"officer"}))

        assert result.reason is AvailabilityReason.TYPE_DISQUALIFIED

    def test_size_before_traits(self, rebel_fleet: FleetState, ship: ShipEntry) -> None:
        record = stacked_upgrade(
            restrictions=UpgradeRestrictions(size=("small",), traits=("Fighter",))
        )

        result = self.evaluate(record, rebel_fleet, ship)

        assert result.reason is AvailabilityReason.SIZE_RESTRICTED

    def test_traits_before_unique_class(
        self, rebel_fleet: FleetState, ship: ShipEntry, attach
    ) -> None:
        attach(ship, "Lando Calrissian")
        record = stacked_upgrade(
            unique_class=("Lando",), restrictions=UpgradeRestrictions(traits=("Fighter",))
        )

        result = self.evaluate(record, rebel_fleet, ship)

        assert result.reason is AvailabilityReason.TRAIT_RESTRICTED

    def test_unique_class_checked_last(
        self, rebel_fleet: FleetState, ship: ShipEntry, attach
    ) -> None:
        attach(ship, "Lando Calrissian")
        record = stacked_upgrade(unique_class=("Lando",))

        result = self.evaluate(record, rebel_fleet, ship)

        assert result.status is AvailabilityStatus.GREYED
        assert result.reason is AvailabilityReason.UNIQUE_CLASS_CLAIMED

    def test_title_skips_restrictions_after_binding(
        self, rebel_fleet: FleetState, ship: ShipEntry
    ) -> None:
        """A title on its own chassis ignores type, size and trait restrictions."""
        record = stacked_upgrade(
            upgrade_type="title",
            bound_shiptype="mc80",
            restrictions=UpgradeRestrictions(size=("small",), traits=("Fighter",)),
        )

        result = self.evaluate(record, rebel_fleet, ship, disqualified=frozenset({"title"}))

        assert result.is_legal
