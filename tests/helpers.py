"""Test doubles and canned Gemini replies shared by the test modules."""

import copy
import json

from src.llm_client import ModelClient

WALLET = "0x9f2c4e1b7a3d"


class FakeModelClient(ModelClient):
    """Replays canned replies in order; an Exception in the script is raised instead."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []

    def generate(self, parts):
        self.calls.append(parts)
        if not self.replies:
            raise AssertionError("FakeModelClient ran out of scripted replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def health_verdict(is_health=True, confidence=92, document_type="Blood Test", reason="Contains CBC values"):
    return json.dumps({
        "isHealthDocument": is_health,
        "confidence": confidence,
        "documentType": document_type,
        "reason": reason,
    })


SAMPLE_ANALYSIS = {
    "title": "Complete Blood Count - March 2026",
    "documentType": "Blood Test",
    "date": "2026-03-04",
    "patientInfo": {"name": "Jane Doe", "age": 42, "gender": "Female", "id": "LAB-5531"},
    "findings": [
        {
            "parameter": "Hemoglobin",
            "value": "11.2",
            "unit": "g/dL",
            "referenceRange": "12.0-15.5",
            "status": "low",
            "category": "Hemogram",
            "clinicalSignificance": "Slightly below range, consistent with mild anemia.",
        },
        {
            "parameter": "Platelets",
            "value": 250,
            "unit": "10^3/uL",
            "referenceRange": "150-400",
            "status": "Normal",
            "category": "Hemogram",
            "clinicalSignificance": "Within range.",
        },
    ],
    "abnormalValues": [
        {
            "parameter": "Hemoglobin",
            "value": "11.2",
            "expectedRange": "12.0-15.5",
            "severity": "mild",
            "meaning": "Reduced oxygen carrying capacity.",
            "possibleCauses": ["Iron deficiency", "Blood loss"],
            "recommendedActions": ["Check ferritin"],
        }
    ],
    "summary": "Mostly normal blood count with mild anemia.",
    "detailedAnalysis": "Hemoglobin is mildly reduced while platelets are normal.",
    "medicalContext": "A CBC measures the cells circulating in blood.",
    "recommendations": [
        {"category": "Immediate Actions", "items": ["Discuss results with your physician"]},
        {"category": "Lifestyle Modifications", "items": ["Eat iron-rich foods"]},
        {"category": "Follow-up Care", "items": ["Repeat CBC in 3 months"]},
    ],
    "riskAssessment": {
        "level": "low",
        "factors": ["Mild anemia"],
        "followUpRequired": True,
        "followUpTiming": "3 months",
    },
    "confidence": 85,
    "disclaimer": "This AI analysis is for informational purposes only.",
}


def analysis_reply(**overrides):
    payload = copy.deepcopy(SAMPLE_ANALYSIS)
    payload.update(overrides)
    return json.dumps(payload)

