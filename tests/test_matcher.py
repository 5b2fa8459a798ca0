"""Tests for the free-text symptom matcher."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from healthassist.matcher import (
    COVID_PATTERN_RULE,
    EMERGENCY_RULE,
    FALLBACK,
    RULES,
    match_text,
    normalize,
)
from healthassist.models import Category, GuidanceRule


class TestEmergencyPriority:
    @pytest.mark.parametrize("keyword", sorted(EMERGENCY_RULE.trigger_keywords))
    def test_each_emergency_keyword_fires(self, keyword):
        result = match_text(f"I think I have {keyword}")
        assert result.rule == "emergency"
        assert result.category == Category.WARNING

    def test_emergency_beats_covid_pattern(self):
        result = match_text("fever, cough and chest pain")
        assert result.message == EMERGENCY_RULE.message

    @given(
        keyword=st.sampled_from(sorted(EMERGENCY_RULE.trigger_keywords)),
        prefix=st.text(max_size=40),
        suffix=st.text(max_size=40),
    )
    def test_emergency_dominates_any_surrounding_text(self, keyword, prefix, suffix):
        assert match_text(prefix + keyword + suffix).rule == "emergency"

    def test_matching_is_case_insensitive(self):
        assert match_text("CHEST PAIN since this morning").rule == "emergency"


class TestCovidPattern:
    def test_fever_and_cough_returns_covid_message(self):
        result = match_text("I have a fever and a cough")
        assert result.message == COVID_PATTERN_RULE.message
        assert result.category == Category.INFO

    @pytest.mark.parametrize("text", [
        "high temperature and trouble breathing",
        "fever and I lost my sense of taste",
        "Temperature plus no sense of smell",
    ])
    def test_other_combinations(self, text):
        assert match_text(text).rule == "covid_pattern"

    def test_fever_with_sore_throat_is_not_covid(self):
        result = match_text("I have a fever and sore throat")
        assert result.rule == "fever"
        assert result.category == Category.GENERAL

    def test_cough_alone_is_not_covid(self):
        assert match_text("dry cough for two days").rule == "cough_sore_throat"


class TestSingleSymptomRules:
    @pytest.mark.parametrize("text,rule,category", [
        ("my temperature is high", "fever", Category.GENERAL),
        ("scratchy sore throat", "cough_sore_throat", Category.GENERAL),
        ("my head hurts", "headache", Category.GENERAL),
        ("nausea after lunch", "digestive", Category.GENERAL),
        ("I feel dizzy when standing", "dizziness", Category.GENERAL),
        ("itchy rash on my arm", "skin", Category.GENERAL),
        ("lots of stress at work", "mental_health", Category.INFO),
        ("when is my booster due", "vaccination", Category.SUCCESS),
        ("which medication should I take", "treatment", Category.GENERAL),
    ])
    def test_rule_and_category(self, text, rule, category):
        result = match_text(text)
        assert result.rule == rule
        assert result.category == category

    def test_fever_checked_before_headache(self):
        assert match_text("headache and fever").rule == "fever"

    def test_digestive_checked_before_mental_health(self):
        assert match_text("stress gives me stomach cramps").rule == "digestive"


class TestFallback:
    def test_unmatched_input_returns_fallback_verbatim(self):
        result = match_text("I just feel a bit off today")
        assert result.message == FALLBACK.message
        assert result.category == Category.GENERAL
        assert result.rule == "fallback"

    def test_fallback_asks_for_details(self):
        assert "When did your symptoms start?" in FALLBACK.message
        assert "pre-existing" in FALLBACK.message

    def test_rule_names_unique(self):
        names = [r.name for r in RULES] + [FALLBACK.name]
        assert len(names) == len(set(names))


class TestTypographicInput:
    @pytest.mark.parametrize("text", ["I can’t breathe", "I CAN‘T BREATHE", "i cant breathe"])
    def test_apostrophe_variants_reach_emergency(self, text):
        assert match_text(text).rule == "emergency"

    def test_normalize_folds_apostrophes(self):
        assert normalize("Can’t ʼBreathe") == "can't 'breathe"


class TestCompoundRule:
    def test_covid_rule_has_no_single_keywords(self):
        assert COVID_PATTERN_RULE.trigger_keywords == frozenset()
        assert len(COVID_PATTERN_RULE.required_groups) == 2

    def test_requires_a_term_from_every_group(self):
        assert not COVID_PATTERN_RULE.fires("fever")
        assert not COVID_PATTERN_RULE.fires("cough")
        assert COVID_PATTERN_RULE.fires("fever with cough")

    def test_keyword_rule_fires_on_any_keyword(self):
        rule = GuidanceRule(
            name="demo",
            trigger_keywords=frozenset({"alpha", "beta"}),
            message="m",
            category=Category.GENERAL,
        )
        assert rule.fires("only beta here")
        assert not rule.fires("gamma")

    def test_rule_without_triggers_never_fires(self):
        assert not FALLBACK.fires("anything at all")


class TestMessageTexts:
    @pytest.mark.parametrize("text,ending", [
        ("headache", "as these could indicate a more serious condition."),
        ("rash", "as this could indicate a severe allergic reaction."),
        ("vomiting", "please consult a healthcare provider immediately."),
        ("dizzy", "please seek immediate medical attention."),
    ])
    def test_full_guidance_text(self, text, ending):
        assert match_text(text).message.endswith(ending)

    def test_digestive_advice_on_bland_foods(self):
        assert "Stick to bland foods like rice, toast, or bananas when you can eat." in match_text("nausea").message
