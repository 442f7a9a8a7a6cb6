"""Tests for stat block normalization."""
import pytest

from codex_combat.core.errors import StatParseError
from codex_combat.core.normalizer import (
    NormalizeOptions,
    calculate_bab,
    derive_saves,
    normalize_stats,
    parse_armor_class,
    parse_max_hp,
    parse_saves,
    split_list_text,
)
from codex_combat.core.size import SizeCategory
from codex_combat.core.tables import BabProgression
from codex_combat.models.stats import AbilityScores, Saves


class TestDefaults:
    """Tests for an empty stat block."""

    def test_empty_block(self):
        stats = normalize_stats({})
        assert stats.abilities == AbilityScores()
        assert stats.size == SizeCategory.MEDIUM
        assert (stats.ac.total, stats.ac.touch, stats.ac.flat_footed) == (10, 10, 10)
        assert stats.saves == Saves(0, 0, 0)
        assert stats.speed == 30
        assert stats.bab == 0
        assert stats.cmb == 0
        assert stats.cmd == 10
        assert stats.extra == {}

    def test_missing_hp_uses_one_hit_die(self):
        """Without an HP entry the creature gets the average of 1d8."""
        assert normalize_stats({}).max_hp == 4

    def test_none_is_accepted(self):
        assert normalize_stats(None).bab == 0


class TestAbilities:
    """Tests for ability score parsing."""

    def test_keys_are_case_insensitive(self):
        stats = normalize_stats({"str": 18, "DEXTERITY": "14", "Con": "Con 12"})
        assert stats.abilities.strength == 18
        assert stats.abilities.dexterity == 14
        assert stats.abilities.constitution == 12

    def test_dash_scores_count_as_ten(self):
        """Creatures without a Con score list it as a dash."""
        assert normalize_stats({"Con": "-"}).abilities.constitution == 10


class TestArmorClass:
    """Tests for AC parsing and fallbacks."""

    def test_full_string(self):
        ac = normalize_stats({"AC": "15, touch 12, flat-footed 13"}).ac
        assert (ac.total, ac.touch, ac.flat_footed) == (15, 12, 13)

    def test_total_only(self):
        """Touch falls back to total; flat-footed is total minus Dex."""
        ac = normalize_stats({"AC": "18", "Dex": 14}).ac
        assert ac.total == 18
        assert ac.touch == 18
        assert ac.flat_footed == 16

    def test_numeric_value(self):
        ac = normalize_stats({"AC": 17}).ac
        assert (ac.total, ac.touch, ac.flat_footed) == (17, 17, 17)

    def test_missing_uses_dex_and_size(self):
        ac = normalize_stats({"Dex": 16, "Size": "Small"}).ac
        assert ac.total == 14
        assert ac.touch == 14
        assert ac.flat_footed == 11

    def test_unparseable_falls_back(self):
        ac = normalize_stats({"AC": "n/a", "Dex": 12}).ac
        assert ac.total == 11

    def test_separate_touch_and_flat_footed_keys(self):
        ac = normalize_stats({"AC": 16, "Touch": "11", "Flat-Footed": 15}).ac
        assert (ac.total, ac.touch, ac.flat_footed) == (16, 11, 15)

    def test_uncanny_dodge_keeps_dex(self):
        stats = normalize_stats({
            "AC": "17, touch 13",
            "Dex": 16,
            "Defensive Abilities": "evasion, uncanny dodge",
        })
        assert stats.ac.flat_footed == 17
        assert stats.extra["Defensive Abilities"] == "evasion, uncanny dodge"

    def test_uncanny_dodge_from_options(self):
        options = NormalizeOptions(special_abilities=["Uncanny Dodge"])
        assert normalize_stats({"AC": 17, "Dex": 16}, options).ac.flat_footed == 17

    def test_parser_raises_on_garbage(self):
        with pytest.raises(StatParseError) as exc_info:
            parse_armor_class("n/a")
        assert exc_info.value.field == "AC"


class TestSaves:
    """Tests for save parsing and derivation."""

    def test_string(self):
        saves = normalize_stats({"Saves": "Fort +5, Ref +3, Will +1"}).saves
        assert saves == Saves(5, 3, 1)

    def test_mapping(self):
        saves = normalize_stats({"Saves": {"Fort": "+4", "Ref": 2, "Will": "-1"}}).saves
        assert saves == Saves(4, 2, -1)

    def test_separate_keys(self):
        """A save missing from an otherwise valid entry counts as +0."""
        saves = normalize_stats({"Fort": 6, "Will": "+2"}).saves
        assert saves == Saves(6, 0, 2)

    def test_parser_raises_without_any_save(self):
        with pytest.raises(StatParseError):
            parse_saves("garbage")
        with pytest.raises(StatParseError):
            parse_saves(12)

    def test_derived_from_level(self):
        """Con 14 picks the good Fort column; Dex 12 and Wis 10 stay poor."""
        saves = normalize_stats({"Level": 5, "Con": 14, "Dex": 12}).saves
        assert saves == Saves(fort=6, ref=2, will=1)

    def test_derived_from_challenge_rating(self):
        saves = normalize_stats({"CR": 3, "Con": 14}).saves
        assert saves == Saves(fort=5, ref=1, will=1)

    def test_level_clamped_to_table(self):
        saves = normalize_stats({"Level": 40}).saves
        assert saves == Saves(10, 10, 10)

    def test_designated_good_saves(self):
        options = NormalizeOptions(good_saves=["Will"])
        saves = normalize_stats({"Level": 5}, options).saves
        assert saves == Saves(fort=1, ref=1, will=4)

    def test_undead_use_charisma_for_fort(self):
        abilities = AbilityScores(charisma=16)
        saves = derive_saves(abilities, 5, creature_type="Undead", good_saves=["will"])
        assert saves.fort == 4

    def test_constructs_add_nothing_to_fort(self):
        abilities = AbilityScores(constitution=14)
        saves = derive_saves(abilities, 5, creature_type="construct", good_saves=[])
        assert saves.fort == 1


class TestSpeed:
    """Tests for speed parsing."""

    def test_feet_string(self):
        assert normalize_stats({"Speed": "20 ft."}).speed == 20

    def test_default(self):
        assert normalize_stats({"Speed": "fast"}).speed == 30


class TestCombatNumbers:
    """Tests for BAB, CMB and CMD."""

    def test_bab_from_free_text(self):
        assert normalize_stats({"Base Attack Bonus": "+6", "Level": 2}).bab == 6

    def test_bab_defaults_to_level(self):
        assert normalize_stats({"Level": 8}).bab == 8

    def test_bab_progressions(self):
        assert calculate_bab(8, BabProgression.FULL) == 8
        assert calculate_bab(8, BabProgression.MEDIUM) == 6
        assert calculate_bab(8, BabProgression.POOR) == 4
        assert calculate_bab(None) == 0

    def test_bab_progression_option(self):
        options = NormalizeOptions(bab_progression=BabProgression.MEDIUM)
        assert normalize_stats({"Level": 8}, options).bab == 6

    def test_cmb_cmd_derived(self, fighter_raw):
        stats = normalize_stats(fighter_raw)
        assert stats.cmb == 8
        assert stats.cmd == 20

    def test_large_special_size_modifier(self):
        stats = normalize_stats({"Level": 5, "Str": 16, "Dex": 12, "Size": "Large"})
        assert stats.cmb == 9
        assert stats.cmd == 20

    def test_tiny_creatures_use_better_of_str_and_dex(self):
        stats = normalize_stats({"Level": 1, "Str": 6, "Dex": 16, "Size": "Tiny"})
        assert stats.cmb == 2
        assert stats.cmd == 10

    def test_agile_maneuvers(self):
        stats = normalize_stats({"Level": 4, "Dex": 18, "Feats": "Agile Maneuvers"})
        assert stats.cmb == 8

    def test_explicit_values_win(self, goblin_raw):
        stats = normalize_stats(goblin_raw)
        assert stats.bab == 1
        assert stats.cmb == 0
        assert stats.cmd == 12


class TestHitPoints:
    """Tests for max HP parsing."""

    def test_leading_integer(self):
        assert normalize_stats({"HP": "25 (3d8+6)"}).max_hp == 25

    def test_bare_dice(self):
        assert normalize_stats({"HP": "2d8"}).max_hp == 9

    def test_parenthesized_dice(self):
        assert normalize_stats({"HP": "(3d8+6)"}).max_hp == 19

    def test_unparseable_uses_default(self):
        assert normalize_stats({"HP": "lots"}).max_hp == 10

    def test_configured_default(self):
        options = NormalizeOptions(default_max_hp=15)
        assert normalize_stats({"HP": "lots"}, options).max_hp == 15

    def test_explicit_max_hp_key(self):
        assert normalize_stats({"HP": "2d8", "maxHp": 40}).max_hp == 40

    def test_construct_size_bonus(self):
        stats = normalize_stats({"HP": "22 (4d10)", "Type": "construct"})
        assert stats.max_hp == 42

    def test_hit_dice_recovered(self):
        stats = normalize_stats({"HP": "30 (4d10+8)"})
        assert stats.hit_dice == 4
        assert stats.effective_level == 4

    def test_parser_rejects_non_positive(self):
        with pytest.raises(StatParseError):
            parse_max_hp("0")
        with pytest.raises(StatParseError):
            parse_max_hp("lots")


class TestSizeAndExtras:
    """Tests for size matching and unrecognized fields."""

    @pytest.mark.parametrize("raw,expected", [
        ("large", SizeCategory.LARGE),
        ("Huge (long)", SizeCategory.HUGE),
        ("enormous", SizeCategory.MEDIUM),
        ("undefined", SizeCategory.MEDIUM),
        ("Smallish", SizeCategory.MEDIUM),
    ])
    def test_size(self, raw, expected):
        assert normalize_stats({"Size": raw}).size == expected

    def test_non_finite_numbers_fall_back(self):
        stats = normalize_stats({"AC": float("nan"), "Str": float("inf"), "HP": float("nan")})
        assert stats.abilities.modifier("Str") == 0
        assert stats.ac.total == 10
        assert stats.max_hp == 10

    def test_unknown_keys_kept(self, goblin_raw):
        stats = normalize_stats(goblin_raw)
        assert stats.extra == {"Languages": "Goblin"}

    def test_creature_type(self, goblin_raw):
        assert normalize_stats(goblin_raw).creature_type == "humanoid (goblinoid)"


class TestFeatsAndSkills:
    """Tests for list and skill fields."""

    def test_feats_split_on_top_level_commas(self):
        stats = normalize_stats({"Feats": "Power Attack, Weapon Focus (longsword, greatsword)"})
        assert stats.feats == ["Power Attack", "Weapon Focus (longsword, greatsword)"]

    def test_option_feats_merged(self):
        options = NormalizeOptions(feats=["Power Attack", "Dodge"])
        stats = normalize_stats({"Feats": "Power Attack"}, options)
        assert stats.feats == ["Power Attack", "Dodge"]

    def test_structured_skills(self):
        stats = normalize_stats({"Skills": {"perception": "+8", "Stealth": 5}})
        assert stats.skills == {"Perception": 8, "Stealth": 5}
        assert stats.skills_text is None

    def test_skill_text(self, goblin_raw):
        stats = normalize_stats(goblin_raw)
        assert stats.skills is None
        assert stats.skills_text == "Ride +10, Stealth +10, Swim +4"

    def test_split_list_text(self):
        assert split_list_text(["a", " b ", ""]) == ["a", "b"]
        assert split_list_text(None) == []
