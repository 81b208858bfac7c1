"""Tests for the net worth service."""

from decimal import Decimal

import pytest

from family_finance.services import NetWorthService, net_worth_from_rows

from conftest import OTHER_USER_ID, USER_ID


@pytest.fixture
def service(backend, notifier):
    return NetWorthService(backend, notifier)


class TestNetWorthService:
    """Tests for NetWorthService.fetch."""

    @pytest.mark.asyncio
    async def test_no_user_makes_no_call(self, service, backend, anonymous):
        assert await service.fetch(anonymous) is None
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_calls_procedure_for_user(self, service, backend, session):
        await service.fetch(session)

        [call] = backend.calls_for("calculate_net_worth", "rpc")
        assert call.filters == {"target_user_id": USER_ID}

    @pytest.mark.asyncio
    async def test_aggregates_own_rows(self, service, backend, session):
        await backend.insert("assets", {"user_id": USER_ID, "name": "Car", "value": "1000", "current_value": "800"})
        await backend.insert("assets", {"user_id": USER_ID, "name": "Bike", "value": "500"})
        await backend.insert("assets", {"user_id": OTHER_USER_ID, "name": "House", "value": "90000"})
        await backend.insert("liabilities", {
            "user_id": USER_ID, "name": "Loan", "total_amount": "1000", "remaining_amount": "300",
        })

        result = await service.fetch(session)

        assert result.total_assets == Decimal("1300")
        assert result.total_liabilities == Decimal("300")
        assert result.net_worth == Decimal("1000")

    @pytest.mark.asyncio
    async def test_nothing_recorded_is_zero(self, service, session):
        result = await service.fetch(session)
        assert (result.total_assets, result.total_liabilities, result.net_worth) == (0, 0, 0)

    @pytest.mark.asyncio
    async def test_backend_failure_returns_none_and_notifies(self, service, backend, session, notifier):
        backend.fail_on("calculate_net_worth", "rpc")

        assert await service.fetch(session) is None
        assert notifier.pending[0].is_error
        assert service.loading is False


class TestNetWorthFromRows:
    """Tests for result normalization."""

    def test_empty_result_is_zero(self):
        result = net_worth_from_rows([])
        assert result.net_worth == Decimal("0")

    def test_non_numeric_values_are_zero(self):
        result = net_worth_from_rows([{"total_assets": "abc", "total_liabilities": None, "net_worth": "NaN"}])
        assert (result.total_assets, result.total_liabilities, result.net_worth) == (0, 0, 0)

    def test_numbers_are_kept(self):
        result = net_worth_from_rows([{"total_assets": 10.5, "total_liabilities": "2.5", "net_worth": 8}])
        assert result.total_assets == Decimal("10.5")
        assert result.net_worth == Decimal("8")
