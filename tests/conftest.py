"""Test configuration utilities and shared fixtures."""

import sys
from decimal import Decimal
from pathlib import Path
from typing import Callable

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from lankatax.backend.app import create_app  # noqa: E402
from lankatax.backend.config.schema import (  # noqa: E402
    PolicyConfiguration,
    Reliefs,
    TaxRates,
)

PolicyFactory = Callable[..., PolicyConfiguration]


@pytest.fixture()
def app() -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app()
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()


@pytest.fixture()
def make_policy() -> PolicyFactory:
    """Build in-memory policies with ``10..60`` bracket rates and no reliefs by default."""

    def _factory(
        assessment_year: str = "2024/2025",
        rates: tuple[int, int, int, int, int, int] = (10, 20, 30, 40, 50, 60),
        **reliefs: int | str | Decimal,
    ) -> PolicyConfiguration:
        first, second, third, fourth, fifth, other = rates
        return PolicyConfiguration(
            assessment_year=assessment_year,
            tax_brackets=TaxRates(
                first=first,
                second=second,
                third=third,
                fourth=fourth,
                fifth=fifth,
                other=other,
            ),
            reliefs=Reliefs(**reliefs),
        )

    return _factory
