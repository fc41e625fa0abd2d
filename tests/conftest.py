import pytest

from app import create_app
from residuals_engine.reconcile import ReconciliationEngine
from storage.memory import InMemoryStorage


PROCESSOR_CSV = (
    "MID,Merchant Name,Transactions,Sales Amount,Income,Expenses,Net,BPS,%,Agent Net\n"
    "123456789,Test Merchant,100,$5000.00,$250.00,($50.00),($200.00),50,2.5,$125.00\n"
)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def engine(storage):
    return ReconciliationEngine(storage)


@pytest.fixture
def app(storage):
    app = create_app(storage=storage)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
