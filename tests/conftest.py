from datetime import datetime, timedelta, timezone

import pytest

from core.services import FieldVisitServices
from tests.fake_store import InMemoryDocumentStore

OWNER = "u1"
OTHER_OWNER = "u2"
TZ = timezone(timedelta(hours=3))


def at(day: int, hour: int = 10) -> datetime:
    return datetime(2024, 5, day, hour, 0, tzinfo=TZ)


def seed(store: InMemoryDocumentStore):
    docs = {
        "farmers/F1": {"ownerUid": OWNER, "name": "Çiğdem Yılmaz", "phone": "0532 111 22 33"},
        "farmers/F2": {"ownerUid": OWNER, "name": "Ahmet Kaya", "phone": "0533 444 55 66"},
        "farmers/F1/fields/A": {"ownerUid": OWNER, "farmerId": "F1", "type": "Buğday", "address": "Menemen"},
        "farmers/F1/fields/B": {"ownerUid": OWNER, "farmerId": "F1", "type": "Zeytin", "address": "Torbalı"},
        "farmers/F2/fields/C": {"ownerUid": OWNER, "farmerId": "F2", "type": "Pamuk", "address": "Söke"},
        "recommendations/r1": {"ownerUid": OWNER, "name": "Bakırlı Fungusit", "kind": "pesticide", "subKind": "Fungusit"},
        "recommendations/r2": {"ownerUid": OWNER, "name": "Üre", "kind": "fertilizer", "subKind": "Azotlu Gübreler"},
        "farmers/F1/fields/A/visits/v1": {
            "ownerUid": OWNER, "farmerId": "F1", "fieldId": "A", "date": at(1),
            "note": "Yaprak lekesi görüldü", "recommendationIds": ["r1"],
        },
        "farmers/F1/fields/A/visits/v2": {
            "ownerUid": OWNER, "farmerId": "F1", "fieldId": "A", "date": at(3),
            "note": "", "recommendationIds": [],
        },
        # Older document without denormalized parent ids.
        "farmers/F1/fields/B/visits/v3": {
            "ownerUid": OWNER, "date": at(5),
            "note": "Sulama kontrolü", "recommendationIds": ["r2", "r2"],
        },
        "farmers/F2/fields/C/visits/v4": {
            "ownerUid": OWNER, "farmerId": "F2", "fieldId": "C", "date": at(2),
            "note": "Çiğdem hanımın komşusu", "recommendationIds": ["gone"],
        },
        "farmers/F2/fields/C/visits/v5": {
            "ownerUid": OWNER, "farmerId": "F2", "fieldId": "C", "date": at(4),
            "note": "Hasat öncesi", "recommendationIds": [],
        },
        # Another account's data.
        "farmers/G1": {"ownerUid": OTHER_OWNER, "name": "Mehmet Demir", "phone": "0544 000 00 00"},
        "farmers/G1/fields/X": {"ownerUid": OTHER_OWNER, "farmerId": "G1", "type": "Mısır", "address": "Bergama"},
        "farmers/G1/fields/X/visits/w1": {
            "ownerUid": OTHER_OWNER, "farmerId": "G1", "fieldId": "X", "date": at(6), "note": "Başka hesap",
        },
    }
    for path, data in docs.items():
        store.docs[path] = data
    return store


@pytest.fixture
def store():
    return seed(InMemoryDocumentStore())


@pytest.fixture
def services(store):
    return FieldVisitServices(store, OWNER)
