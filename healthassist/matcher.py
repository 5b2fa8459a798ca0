"""Rule-based matcher from free-text symptom descriptions to canned guidance."""

import structlog

from healthassist.models import Category, Guidance, GuidanceRule

logger = structlog.get_logger(__name__)

FEVER_TERMS = frozenset({"fever", "temperature"})
RESPIRATORY_TERMS = frozenset({"cough", "breathing", "taste", "smell"})

EMERGENCY_RULE = GuidanceRule(
    name="emergency",
    trigger_keywords=frozenset({
        "emergency", "can't breathe", "cant breathe", "cannot breathe", "chest pain",
        "unconscious", "severe bleeding", "heart attack", "stroke",
    }),
    message=(
        "This sounds like it could be a medical emergency. Please call your local "
        "emergency number (such as 911 or 112) or go to the nearest emergency "
        "department right away. Do not wait for symptoms to improve on their own."
    ),
    category=Category.WARNING,
)

COVID_PATTERN_RULE = GuidanceRule(
    name="covid_pattern",
    required_groups=(FEVER_TERMS, RESPIRATORY_TERMS),
    message=(
        "A fever together with a cough, breathing difficulty, or a change in taste or "
        "smell matches the common pattern of COVID-19. Please take a COVID-19 test, "
        "isolate from others until you have a result, and contact your healthcare "
        "provider. If breathing becomes difficult, seek emergency care immediately."
    ),
    category=Category.INFO,
)

SINGLE_SYMPTOM_RULES = (
    GuidanceRule(
        name="fever",
        trigger_keywords=frozenset({"fever", "temperature"}),
        message=(
            "Fever can be a symptom of many conditions, including viral infections like "
            "flu or COVID-19, bacterial infections, or inflammatory conditions. Monitor "
            "your temperature regularly. If it exceeds 103°F (39.4°C) or persists for more "
            "than three days, please consult a healthcare provider. In the meantime, stay "
            "hydrated and rest."
        ),
        category=Category.GENERAL,
    ),
    GuidanceRule(
        name="cough_sore_throat",
        trigger_keywords=frozenset({"cough", "sore throat"}),
        message=(
            "Coughing and sore throat are common symptoms of upper respiratory infections, "
            "allergies, or irritation. For relief, try drinking warm liquids, using throat "
            "lozenges, or taking over-the-counter pain relievers. If symptoms persist for "
            "more than a week, worsen suddenly, or are accompanied by difficulty breathing, "
            "please seek medical attention."
        ),
        category=Category.GENERAL,
    ),
    GuidanceRule(
        name="headache",
        trigger_keywords=frozenset({"headache", "head hurts"}),
        message=(
            "Headaches can be caused by stress, dehydration, eyestrain, or illness. Try "
            "resting in a quiet, dark room, staying hydrated, and taking appropriate "
            "over-the-counter pain relievers. If your headache is severe, sudden, or "
            "accompanied by fever, confusion, stiff neck, or vision problems, please seek "
            "immediate medical attention as these could indicate a more serious condition."
        ),
        category=Category.GENERAL,
    ),
    GuidanceRule(
        name="digestive",
        trigger_keywords=frozenset({"stomach", "nausea", "diarrhea", "vomiting"}),
        message=(
            "Digestive issues can be caused by food poisoning, viral gastroenteritis, or "
            "other conditions. It's important to stay hydrated with small sips of water or "
            "electrolyte solutions. Stick to bland foods like rice, toast, or bananas when "
            "you can eat. If symptoms persist beyond 48 hours, include severe pain, or if you "
            "notice blood, please consult a healthcare provider immediately."
        ),
        category=Category.GENERAL,
    ),
    GuidanceRule(
        name="dizziness",
        trigger_keywords=frozenset({"dizzy", "dizziness", "fainting"}),
        message=(
            "Dizziness can be caused by dehydration, inner ear issues, low blood sugar, or "
            "more serious conditions. Make sure you're staying hydrated and eating "
            "regularly. Sit or lie down when feeling dizzy to prevent falls. If dizziness is "
            "severe, recurrent, or accompanied by other symptoms like chest pain or severe "
            "headache, please seek immediate medical attention."
        ),
        category=Category.GENERAL,
    ),
    GuidanceRule(
        name="skin",
        trigger_keywords=frozenset({"rash", "skin"}),
        message=(
            "Skin rashes can be caused by allergic reactions, infections, or other "
            "conditions. Avoid scratching and apply cool compresses for comfort. "
            "Over-the-counter hydrocortisone cream might help with itching. If the rash is "
            "widespread, painful, blistering, or accompanied by fever or difficulty "
            "breathing, please seek immediate medical attention as this could indicate a "
            "severe allergic reaction."
        ),
        category=Category.GENERAL,
    ),
    GuidanceRule(
        name="mental_health",
        trigger_keywords=frozenset({"anxiety", "anxious", "stress", "depression", "depressed"}),
        message=(
            "It is completely normal to feel anxious or stressed, especially during a "
            "pandemic. Regular routines, physical activity, limiting news intake, and "
            "staying connected with people you trust can help. If these feelings are "
            "overwhelming or last for weeks, please reach out to a mental health "
            "professional or a support helpline."
        ),
        category=Category.INFO,
    ),
    GuidanceRule(
        name="vaccination",
        trigger_keywords=frozenset({"vaccine", "vaccination", "vaccinated", "booster"}),
        message=(
            "Vaccination is one of the most effective ways to protect yourself and others. "
            "Mild side effects such as a sore arm, tiredness, or a low fever for a day or two "
            "are normal signs that your immune system is responding. You can book your next "
            "dose or booster from the Appointments page."
        ),
        category=Category.SUCCESS,
    ),
    GuidanceRule(
        name="treatment",
        trigger_keywords=frozenset({"treatment", "medication", "medicine"}),
        message=(
            "Treatment depends on your specific condition, so please follow the advice of "
            "your healthcare provider or pharmacist. Take medications only as directed, "
            "check for interactions with anything else you are taking, and never share "
            "prescription medicines with others."
        ),
        category=Category.GENERAL,
    ),
)

FALLBACK = GuidanceRule(
    name="fallback",
    message=(
        "Based on what you've described, it could be a number of different conditions. "
        "To get a better understanding, could you provide more details about:\n\n"
        "- When did your symptoms start?\n"
        "- Are they getting better, worse, or staying the same?\n"
        "- Have you tried any treatment so far?\n"
        "- Do you have any pre-existing health conditions?\n\n"
        "Remember, this is just basic guidance and not a replacement for professional "
        "medical advice. If your symptoms are severe or persistent, please consult a "
        "healthcare provider."
    ),
    category=Category.GENERAL,
)

RULES = (EMERGENCY_RULE, COVID_PATTERN_RULE, *SINGLE_SYMPTOM_RULES)

# Curly and modifier apostrophes from mobile keyboards.
_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "ʼ": "'"})


def normalize(text: str) -> str:
    """Lower-case ``text`` and fold typographic apostrophes to ASCII."""
    return text.lower().translate(_APOSTROPHES)


def _to_guidance(rule: GuidanceRule) -> Guidance:
    return Guidance(message=rule.message, category=rule.category, rule=rule.name)


def match_text(text: str) -> Guidance:
    """Return the guidance of the first rule that fires for ``text``.

    Rules are tried in ``RULES`` order with case-insensitive substring
    containment; the fallback guarantees a response for any input.
    """
    normalized = normalize(text)
    for rule in RULES:
        if rule.fires(normalized):
            logger.debug("rule_matched", rule=rule.name)
            return _to_guidance(rule)
    logger.debug("rule_matched", rule=FALLBACK.name)
    return _to_guidance(FALLBACK)
