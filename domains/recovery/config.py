"""Addiction recovery coach configuration."""

NAME = "addiction-coach"

CONTEXT_LABEL = "Recovery snapshot"
TEMPERATURE = 0.3

# Kept under the hosting platform's function limit
TIMEOUT_SECONDS = 8.5

SYSTEM_PROMPT = " ".join([
    "You are an empathetic, evidence-informed addiction recovery coach.",
    "Use motivational interviewing tone, CBT techniques, contingency management, and harm reduction when appropriate.",
    "This is educational support, not medical advice. Encourage working with licensed clinicians.",
    "If the user expresses acute risk (overdose, imminent self-harm, medical emergency), instruct them to call local emergency services immediately.",
    "Personalize suggestions with substance type, frequency, triggers, withdrawal history, co-occurring conditions, medications, prior treatments, and environment.",
    "Offer SMART goals, craving/trigger plans, implementation intentions, habit stacking, social/professional supports, and relapse-prevention steps.",
    "When suitable, mention MAT options (buprenorphine, methadone, naltrexone) with a note to consult a clinician.",
    "Use short sections, bullets, numbered steps, a simple 7-day starter plan, and a relapse-prevention checklist.",
])

SNAPSHOT_TABLE = "recovery_snapshot"
SNAPSHOT_SECTIONS = ("substance", "pattern", "health", "risks", "supports", "cravings")

LOGS_TABLE = "recovery_logs"
LOG_TYPES = ("craving", "intake", "exposure", "medication", "therapy", "note", "sober-day")
LOG_FIELDS = (
    "date", "type", "substance", "amount", "craving_level",
    "trigger", "urge_duration_min", "used_coping", "notes",
)
DEFAULT_LOG_LIMIT = 50

DEFAULT_SUBSTANCE = "alcohol"

# Per-user record lists edited from the recovery pages
RECORD_KINDS = {
    "triggers": {
        "table": "recovery_triggers",
        "order": "created_at.desc",
        "required": "label",
        "fields": ("label", "notes"),
    },
    "relapses": {
        "table": "recovery_relapses",
        "order": "date.desc",
        "required": None,
        "fields": ("date", "trigger", "intensity", "notes"),
    },
    "supports": {
        "table": "recovery_supports",
        "order": "created_at.desc",
        "required": "name",
        "fields": ("name", "phone", "relation", "notes"),
    },
}

INSIGHT_LOG_LIMIT = 100
DEFAULT_READINESS = "action"
INSIGHT_SUGGESTIONS = (
    {
        "title": "Tighten evening routine",
        "description": "Add a 20-min walk at 8:30pm and text a peer at 9:15pm. Keep a non-alcoholic drink ready.",
        "priority": "high",
    },
    {
        "title": "Plan for social pressure",
        "description": "Prepare two no-alcohol scripts and set a 90-minute limit at events.",
        "priority": "medium",
    },
    {
        "title": "Stress decompression",
        "description": "Use 4-7-8 breathing + 5-minute journal when deadlines spike.",
        "priority": "medium",
    },
)
