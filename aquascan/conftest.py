"""
PyTest configuration and fixtures.
"""

import io
import json
import time
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from PIL import Image

from geolocation import GeolocationAdapter
from models import AnalysisResult, Location, RiskLevel, WaterParameters
from result_store import ResultStore
from water_analyzer import WaterAnalyzer

SAFE_REPLY = {
    "riskLevel": "SAFE",
    "score": 91,
    "summary": "Parameters fall within WHO drinking-water guideline values.",
    "simpleExplanation": "This water looks safe to drink.",
    "parameters": {"pH": 7.0, "tds": 150, "turbidity": "Low", "chlorine": 0.2},
    "alerts": [],
    "recommendations": ["Store in a clean covered container"],
}


class FakeModels:
    """Stands in for client.models; replays canned replies in order."""

    def __init__(self, replies, delay=0.0):
        self.replies = list(replies)
        self.delay = delay
        self.calls = []

    def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.delay:
            time.sleep(self.delay)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        text = reply if isinstance(reply, str) or reply is None else json.dumps(reply)
        return SimpleNamespace(text=text)


class FakeClient:
    def __init__(self, *replies, delay=0.0):
        self.models = FakeModels(replies, delay=delay)


def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(40, 90, 200)).save(buf, format="PNG")
    return buf.getvalue()


def make_result(score=80, risk_level=RiskLevel.SAFE, minutes=0, location=None) -> AnalysisResult:
    stamp = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc) + timedelta(minutes=minutes)
    return AnalysisResult(
        risk_level=risk_level,
        score=score,
        summary="summary",
        simple_explanation="explanation",
        parameters=WaterParameters(pH=7.1),
        recommendations=("Boil for 5 mins",),
        timestamp=stamp.isoformat(),
        location=location,
    )


@pytest.fixture
def safe_reply():
    return json.loads(json.dumps(SAFE_REPLY))


@pytest.fixture
def make_analyzer():
    def _make(*replies, timeout=None, delay=0.0):
        return WaterAnalyzer(client=FakeClient(*replies, delay=delay), timeout=timeout)
    return _make


@pytest.fixture
def store(tmp_path):
    return ResultStore(tmp_path)


@pytest.fixture
def no_location():
    return GeolocationAdapter(provider=None)


@pytest.fixture
def fixed_location():
    return GeolocationAdapter(provider=lambda: Location(latitude=12.97, longitude=77.59))
