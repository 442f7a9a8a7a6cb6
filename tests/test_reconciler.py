"""Tests for applying net bonuses to derived stats."""
import pytest

from codex_combat.core.normalizer import normalize_stats
from codex_combat.core.reconciler import reconcile
from codex_combat.core.stacking import StackedBonuses
from codex_combat.models.combatant import Combatant, FeatSet, Item


def _bonuses(**net) -> StackedBonuses:
    return StackedBonuses(net=dict(net))


@pytest.fixture
def breastplate() -> Item:
    return Item(id="breastplate", name="Breastplate", item_type="armor", max_dex=2, armor_check_penalty=-4)


class TestNoBonuses:
    """Tests for reconciling without modifiers."""

    def test_mirrors_base(self, fighter_raw):
        base = normalize_stats(fighter_raw)
        effective = reconcile(base, StackedBonuses())
        assert effective.abilities == base.abilities
        assert effective.ac == base.ac
        assert effective.saves == base.saves
        assert effective.max_hp == base.max_hp
        assert effective.speed == base.speed
        assert effective.initiative_mod == 2

    def test_base_is_not_modified(self, fighter_raw):
        base = normalize_stats(fighter_raw)
        reconcile(base, _bonuses(AC=4, Dex=4, Str=2))
        assert base.ac.total == 18
        assert base.abilities.dexterity == 14
        assert base.abilities.strength == 16


class TestAbilitiesAndSaves:
    """Tests for ability bonuses and their effect on saves."""

    def test_ability_bonus(self, fighter_raw):
        effective = reconcile(normalize_stats(fighter_raw), _bonuses(Str=4))
        assert effective.abilities.strength == 20

    def test_save_bonuses_compose(self):
        base = normalize_stats({"Saves": "Fort +5, Ref +3, Will +1"})
        effective = reconcile(base, _bonuses(Saves=1, Ref=2, Dex=4))
        assert effective.saves.fort == 6
        assert effective.saves.ref == 8
        assert effective.saves.will == 2

    def test_wisdom_drain_lowers_will(self):
        base = normalize_stats({"Saves": "Fort +0, Ref +0, Will +4", "Wis": 14})
        effective = reconcile(base, _bonuses(Wis=-4))
        assert effective.saves.will == 2

    def test_saves_display(self):
        base = normalize_stats({"Saves": "Fort +5, Ref -1, Will +0"})
        assert reconcile(base, StackedBonuses()).saves_display == "Fort +5, Ref -1, Will +0"


class TestArmorClass:
    """Tests for AC, touch AC and flat-footed AC."""

    def test_direct_bonuses(self):
        base = normalize_stats({"AC": "15, touch 12, flat-footed 13"})
        effective = reconcile(base, _bonuses(AC=2, Touch=1, **{"Flat-Footed": 3}))
        assert (effective.ac.total, effective.ac.touch, effective.ac.flat_footed) == (17, 13, 16)

    def test_dex_change_follows_into_ac(self):
        base = normalize_stats({"AC": "14, touch 12, flat-footed 12", "Dex": 14})
        effective = reconcile(base, _bonuses(Dex=4))
        assert effective.ac.total == 16
        assert effective.ac.touch == 14
        assert effective.ac.flat_footed == 12

    def test_armor_caps_dex_but_not_touch(self, breastplate):
        """max Dex 2 with a Dex modifier of +5: AC gains +2, touch gains +5."""
        base = normalize_stats({"AC": "14, touch 10, flat-footed 14", "Dex": 10})
        effective = reconcile(base, _bonuses(Dex=10), items=[breastplate])
        assert effective.abilities.modifier("Dex") == 5
        assert effective.ac.total == 16
        assert effective.ac.touch == 15
        assert effective.ac.flat_footed == 14

    def test_dex_already_over_cap(self, breastplate):
        base = normalize_stats({"AC": "16, touch 14", "Dex": 18})
        effective = reconcile(base, _bonuses(Dex=4), items=[breastplate])
        assert effective.ac.total == 16
        assert effective.ac.touch == 16

    def test_unequipped_armor_does_not_cap(self, breastplate):
        breastplate.equipped = False
        base = normalize_stats({"AC": "10", "Dex": 10})
        effective = reconcile(base, _bonuses(Dex=10), items=[breastplate])
        assert effective.ac.total == 15


class TestHitPoints:
    """Tests for max HP following Constitution."""

    def test_con_modifier_scales_with_level(self):
        """+1 Con modifier on a level 10 combatant is +10 max HP."""
        base = normalize_stats({"Level": 10, "Con": 12, "HP": "100"})
        effective = reconcile(base, _bonuses(Con=2))
        assert effective.max_hp == 110

    def test_con_loss(self):
        base = normalize_stats({"Level": 10, "Con": 12, "HP": "100"})
        effective = reconcile(base, _bonuses(Con=-4))
        assert effective.max_hp == 80

    def test_floored_at_one(self):
        base = normalize_stats({"Level": 10, "HP": "5"})
        assert reconcile(base, _bonuses(Con=-10)).max_hp == 1

    def test_level_from_hit_dice(self):
        base = normalize_stats({"HP": "30 (4d10+8)"})
        assert reconcile(base, _bonuses(Con=2)).max_hp == 34

    def test_unchanged_modifier_leaves_hp(self):
        """Con 12 -> 13 keeps the +1 modifier."""
        base = normalize_stats({"Level": 10, "Con": 12, "HP": "100"})
        assert reconcile(base, _bonuses(Con=1)).max_hp == 100

    def test_tracked_max_hp(self):
        base = normalize_stats({"HP": "20"})
        combatant = Combatant(name="Tracked", max_hp=50)
        assert reconcile(base, StackedBonuses(), combatant=combatant).max_hp == 50

    def test_direct_max_hp_bonus(self):
        base = normalize_stats({"HP": "20"})
        assert reconcile(base, _bonuses(maxHp=5)).max_hp == 25


class TestSpeed:
    """Tests for numeric and halving speed modifiers."""

    def test_numeric_bonus(self):
        effective = reconcile(normalize_stats({}), _bonuses(Speed=30))
        assert effective.speed == 60
        assert effective.speed_display == "60 ft."

    def test_half(self):
        bonuses = StackedBonuses(qualitative={"Speed": ["half"]})
        assert reconcile(normalize_stats({}), bonuses).speed == 15

    def test_half_applies_after_numeric(self):
        bonuses = StackedBonuses(net={"Speed": 30}, qualitative={"Speed": ["half"]})
        assert reconcile(normalize_stats({}), bonuses).speed == 30

    def test_each_half_token_halves_again(self):
        bonuses = StackedBonuses(qualitative={"Speed": ["half", "half"]})
        assert reconcile(normalize_stats({}), bonuses).speed == 7

    def test_never_negative(self):
        assert reconcile(normalize_stats({}), _bonuses(Speed=-50)).speed == 0


class TestOtherFields:
    """Tests for initiative, combat numbers and extra fields."""

    def test_initiative(self, fighter_raw):
        base = normalize_stats(fighter_raw)
        assert reconcile(base, _bonuses(Initiative=2)).initiative_mod == 4
        effective = reconcile(base, StackedBonuses(), feats=FeatSet(names=["Improved Initiative"]))
        assert effective.initiative_mod == 6

    def test_combat_numbers(self, fighter_raw):
        effective = reconcile(normalize_stats(fighter_raw), _bonuses(BAB=1, CMB=2, CMD=-1))
        assert effective.bab == 6
        assert effective.cmb == 10
        assert effective.cmd == 19

    def test_extra_fields(self):
        base = normalize_stats({"Perception": "+8 (darkvision)", "Languages": "Common"})
        effective = reconcile(base, _bonuses(Perception=2, Languages=1))
        assert effective.extra["Perception"] == 10
        assert effective.extra["Languages"] == "Common"
        assert base.extra["Perception"] == "+8 (darkvision)"
