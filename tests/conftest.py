"""
Pytest fixtures and configuration for glosa engine tests.
Provides sample TISS guides and an environment without credentials.
"""

from datetime import date, timedelta

import pytest


_ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "AZURE_OPENAI_API_KEY",
    "AZURE_OPENAI_ENDPOINT",
    "AZURE_OPENAI_BASE_URL",
    "AZURE_OPENAI_DEPLOYMENT",
    "GLOSA_CONFIG",
    "GLOSA_DEFAULT_OPERATOR",
    "GLOSA_HIGH_VALUE_THRESHOLD",
    "GLOSA_PREDICTION_ENABLED",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """No OpenAI credentials or engine overrides leak into tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep load_dotenv() away from any .env in the repository
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def recent_date():
    """ISO date ten days ago: neither future nor older than one year."""
    return (date.today() - timedelta(days=10)).isoformat()


@pytest.fixture
def future_date():
    return (date.today() + timedelta(days=5)).isoformat()


@pytest.fixture
def old_date():
    return (date.today() - timedelta(days=400)).isoformat()


@pytest.fixture
def consultation_guide(recent_date):
    """A complete, valid CONSULTA guide with no operator rule hits."""
    return {
        "tipo": "CONSULTA",
        "numeroGuiaPrestador": "2026000123",
        "dataAtendimento": recent_date,
        "codigoProcedimento": "10101012",
        "valorProcedimento": 150.0,
        "nomeBeneficiario": "Maria da Silva",
        "numeroCarteira": "1234567890123456",
        "codigoCID": "J06.9",
        "numeroConselhoExecutante": "123456SP",
    }


@pytest.fixture
def sadt_guide(recent_date):
    """A complete, valid SADT guide."""
    return {
        "tipo": "SADT",
        "numeroGuiaPrestador": "2026000456",
        "numeroGuiaSolicitacao": "2026000400",
        "dataRealizacao": recent_date,
        "codigoProcedimento": "40301630",
        "quantidadeSolicitada": 1,
        "valorTotal": 85.5,
        "numeroCarteira": "1234567890123456",
    }
