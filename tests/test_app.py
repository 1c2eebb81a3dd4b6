"""
Tests for component wiring and the job runner.
"""

import json
from datetime import date

import pytest

from app.main import main
from finledger.models import Cadence, Subscription
from finledger.orchestrator import create_app_components, memory_backends
from finledger.services.storage import InMemoryStore
from tests.conftest import USER, FakeQuoteProvider


class TestCreateAppComponents:

    def test_memory_components_share_one_store(self):
        store = InMemoryStore()
        components = create_app_components(
            storage=memory_backends(store),
            quotes=FakeQuoteProvider(),
        )

        assert components.storage.investments is store
        assert components.storage.audit is store
        assert components.audit_logger is not None

    async def test_components_run_end_to_end(self):
        store = InMemoryStore()
        components = create_app_components(
            storage=memory_backends(store),
            quotes=FakeQuoteProvider(),
        )
        sub = Subscription(
            user_id=USER,
            name="Netflix",
            amount=649,
            cadence=Cadence.MONTHLY,
            next_due_date=date(2024, 3, 1),
        )
        await store.save_subscription(sub)

        result = await components.reminder_job.run(date(2024, 3, 1))

        assert result.notified == 1
        assert store.notifications[0].title == "Subscription due today: Netflix"


class TestJobRunner:

    def test_what_if_prints_result(self, capsys):
        code = main([
            "what-if",
            "--monthly", "10000",
            "--monthly-alt", "15000",
            "--return", "12",
            "--years", "1",
        ])

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["delta"] == pytest.approx(5000 * 12.809328, rel=1e-6)
        assert output["goal_eta_months"] is None

    def test_evaluate_alerts_with_memory_storage(self, capsys):
        code = main(["--memory", "evaluate-alerts"])

        assert code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["checked"] == 0

    def test_sync_sips_requires_user(self):
        with pytest.raises(SystemExit):
            main(["sync-sips"])
