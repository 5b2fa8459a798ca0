"""Symptom ledger for a conversation and the aggregate analysis over it."""

from collections.abc import Iterable, Iterator

import structlog

from healthassist.matcher import normalize
from healthassist.models import (
    DEFAULT_DURATION,
    Category,
    Guidance,
    Severity,
    SymptomCluster,
    SymptomRecord,
)

logger = structlog.get_logger(__name__)

SEVERE_ENTRIES_FOR_URGENT_CARE = 2

EMERGENCY_CLUSTER = SymptomCluster(
    name="emergency",
    substrings=frozenset({
        "chest pain", "difficulty breathing", "shortness of breath", "can't breathe",
        "unconscious", "severe bleeding", "confusion", "bluish lips",
    }),
)
COVID_CLUSTER = SymptomCluster(
    name="covid_like",
    substrings=frozenset({"loss of taste", "loss of smell", "taste", "smell", "covid"}),
)
FLU_CLUSTER = SymptomCluster(
    name="influenza_like",
    substrings=frozenset({"fever", "chills", "body ache", "muscle ache", "fatigue"}),
)
COLD_CLUSTER = SymptomCluster(
    name="common_cold_like",
    substrings=frozenset({"runny nose", "stuffy nose", "congestion", "sore throat", "cough"}),
)
ALLERGY_CLUSTER = SymptomCluster(
    name="allergy_like",
    substrings=frozenset({"sneez", "itchy eyes", "watery eyes", "itch", "hives"}),
)

CLUSTERS = (EMERGENCY_CLUSTER, COVID_CLUSTER, FLU_CLUSTER, COLD_CLUSTER, ALLERGY_CLUSTER)

URGENT_CARE_MESSAGE = (
    "Some of the symptoms you've recorded may need urgent medical attention. Please "
    "contact your healthcare provider or visit an urgent care centre today. If you have "
    "trouble breathing, chest pain, or confusion, call your local emergency number now."
)

CLUSTER_MESSAGES = {
    COVID_CLUSTER.name: (
        "Your symptoms, particularly the change in taste or smell, are consistent with "
        "COVID-19. Please take a test as soon as possible, isolate from others until you "
        "have a result, and contact your healthcare provider for advice."
    ),
    FLU_CLUSTER.name: (
        "Your symptoms resemble influenza. Rest, drink plenty of fluids, and use fever "
        "reducers if needed. Antiviral medication can help when started early, so consider "
        "contacting your healthcare provider, especially if you are in a high-risk group."
    ),
    COLD_CLUSTER.name: (
        "Your symptoms look like a common cold. Rest, warm fluids, and over-the-counter "
        "remedies usually help, and most colds clear up within 7 to 10 days. Seek advice "
        "if symptoms last longer or you develop a high fever."
    ),
    ALLERGY_CLUSTER.name: (
        "Your symptoms are typical of an allergic reaction. Try to avoid known triggers, "
        "and consider an over-the-counter antihistamine. If you notice swelling of the face "
        "or throat, or difficulty breathing, seek emergency care immediately."
    ),
}

MONITOR_MESSAGE = (
    "Based on the symptoms you've recorded ({names}), no specific illness pattern stands "
    "out. Rest, stay hydrated, and keep monitoring how you feel. If your symptoms worsen "
    "or new ones appear, please consult a healthcare provider."
)


class RecordNotFoundError(KeyError):
    """Raised when a record id or position does not exist in the ledger."""


class SymptomLedger:
    """Ordered, in-memory collection of symptom records for one session.

    Records are addressed by their stable ``record_id``; the ``*_at``
    variants address them by current position and are bounds-checked.
    """

    def __init__(self) -> None:
        self._records: list[SymptomRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[SymptomRecord]:
        return iter(list(self._records))

    @property
    def records(self) -> list[SymptomRecord]:
        return list(self._records)

    def add(
        self,
        name: str,
        severity: Severity | str = Severity.MODERATE,
        duration: str | None = None,
    ) -> SymptomRecord | None:
        cleaned = name.strip()
        if not cleaned:
            return None
        record = SymptomRecord(
            name=cleaned,
            severity=Severity(severity),
            duration=(duration or "").strip() or DEFAULT_DURATION,
        )
        self._records.append(record)
        logger.info("symptom_added", record_id=record.record_id, severity=record.severity.value)
        return record

    def index_of(self, record_id: str) -> int:
        for i, record in enumerate(self._records):
            if record.record_id == record_id:
                return i
        raise RecordNotFoundError(f"Symptom record {record_id} not found")

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._records):
            raise RecordNotFoundError(f"Invalid symptom index {index}")

    def remove(self, record_id: str) -> SymptomRecord:
        return self.remove_at(self.index_of(record_id))

    def remove_at(self, index: int) -> SymptomRecord:
        self._check_index(index)
        record = self._records.pop(index)
        logger.info("symptom_removed", record_id=record.record_id)
        return record

    def set_severity(self, record_id: str, severity: Severity | str) -> SymptomRecord:
        return self.set_severity_at(self.index_of(record_id), severity)

    def set_severity_at(self, index: int, severity: Severity | str) -> SymptomRecord:
        self._check_index(index)
        record = self._records[index]
        record.severity = Severity(severity)
        logger.info("symptom_severity_updated", record_id=record.record_id, severity=record.severity.value)
        return record

    def clear(self) -> None:
        self._records.clear()


def _cluster_matches(cluster: SymptomCluster, names: list[str]) -> bool:
    return any(s in name for name in names for s in cluster.substrings)


def analyze(records: Iterable[SymptomRecord]) -> Guidance:
    """Classify a ledger snapshot against the fixed symptom clusters.

    The emergency cluster, or two or more severe entries, yields urgent-care
    guidance tagged ``warning``; otherwise the first matching cluster in
    ``CLUSTERS`` order decides, and all remaining outcomes are tagged ``info``.
    """
    snapshot = list(records)
    if not snapshot:
        raise ValueError("Cannot analyze an empty symptom ledger")

    names = [normalize(r.name) for r in snapshot]
    severe_count = sum(1 for r in snapshot if r.severity == Severity.SEVERE)

    if severe_count >= SEVERE_ENTRIES_FOR_URGENT_CARE or _cluster_matches(EMERGENCY_CLUSTER, names):
        logger.info("ledger_analyzed", rule="urgent_care", severe_count=severe_count)
        return Guidance(message=URGENT_CARE_MESSAGE, category=Category.WARNING, rule="urgent_care")

    for cluster in CLUSTERS[1:]:
        if _cluster_matches(cluster, names):
            logger.info("ledger_analyzed", rule=cluster.name)
            return Guidance(message=CLUSTER_MESSAGES[cluster.name], category=Category.INFO, rule=cluster.name)

    logger.info("ledger_analyzed", rule="monitor")
    message = MONITOR_MESSAGE.format(names=", ".join(r.name for r in snapshot))
    return Guidance(message=message, category=Category.INFO, rule="monitor")
