import pytest

from histoglobe.models import ClassifiedEvent


@pytest.fixture
def make_event():
    def _make(id, title, category="shock", description="", year=None, score=100, lat=48.85, lon=2.35):
        return ClassifiedEvent(
            id=id,
            title=title,
            description=description,
            latitude=lat,
            longitude=lon,
            year=year,
            category=category,
            score=score,
        )
    return _make
