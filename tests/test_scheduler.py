"""Tests for the Trusted Advisor refresh scheduler."""

import time

from scheduler.scheduler import DEFAULT_REFRESH_INTERVAL, RefreshScheduler, RefreshState
from tests.conftest import EC2_CHECK_ID, RDS_CHECK_ID, client_error


class TestRunOnce:
    """Test a single LISTING + REFRESHING pass."""

    def test_refreshes_every_discovered_check(self, advisor_client, boto_client):
        scheduler = RefreshScheduler(advisor_client)

        refreshed = scheduler.run_once()

        assert refreshed == sorted([EC2_CHECK_ID, RDS_CHECK_ID])
        assert boto_client.refresh_trusted_advisor_check.call_count == 2
        assert scheduler.cycles == 1
        assert scheduler.last_refreshed == 2
        assert scheduler.last_failed == 0
        assert scheduler.current_check is None

    def test_listing_failure_skips_refresh(self, advisor_client, boto_client):
        boto_client.describe_trusted_advisor_checks.side_effect = client_error(
            "AccessDeniedException", "DescribeTrustedAdvisorChecks"
        )
        scheduler = RefreshScheduler(advisor_client)

        assert scheduler.run_once() == []
        boto_client.refresh_trusted_advisor_check.assert_not_called()
        assert scheduler.state == RefreshState.LISTING

    def test_refresh_failure_does_not_stall_other_checks(self, advisor_client, boto_client):
        def refresh(checkId):
            if checkId == EC2_CHECK_ID:
                raise client_error("InvalidParameterValueException", "RefreshTrustedAdvisorCheck")
            return {"status": {"checkId": checkId, "status": "enqueued"}}

        boto_client.refresh_trusted_advisor_check.side_effect = refresh
        scheduler = RefreshScheduler(advisor_client)

        assert scheduler.run_once() == [RDS_CHECK_ID]
        assert scheduler.last_failed == 1

    def test_unexpected_refresh_error_does_not_stall_other_checks(self, advisor_client, boto_client):
        def refresh(checkId):
            if checkId == EC2_CHECK_ID:
                raise ValueError("unexpected payload")
            return {"status": {"checkId": checkId, "status": "enqueued"}}

        boto_client.refresh_trusted_advisor_check.side_effect = refresh
        scheduler = RefreshScheduler(advisor_client)

        assert scheduler.run_once() == [RDS_CHECK_ID]
        assert scheduler.last_failed == 1
        assert scheduler.current_check is None

    def test_unexpected_summary_error_does_not_stall_other_checks(self, advisor_client, boto_client):
        healthy = boto_client.describe_trusted_advisor_check_result.side_effect

        def fetch(checkId, language="en"):
            if checkId == EC2_CHECK_ID:
                raise ValueError("unexpected payload")
            return healthy(checkId, language)

        boto_client.describe_trusted_advisor_check_result.side_effect = fetch
        scheduler = RefreshScheduler(advisor_client)

        assert scheduler.run_once() == sorted([EC2_CHECK_ID, RDS_CHECK_ID])
        assert boto_client.refresh_trusted_advisor_check.call_count == 2
        assert scheduler.last_failed == 0

    def test_missing_result_after_refresh_is_tolerated(self, advisor_client, boto_client):
        boto_client.describe_trusted_advisor_check_result.side_effect = None
        boto_client.describe_trusted_advisor_check_result.return_value = {}
        scheduler = RefreshScheduler(advisor_client)

        assert len(scheduler.run_once()) == 2

    def test_static_check_ids(self, advisor_client, boto_client):
        scheduler = RefreshScheduler(advisor_client, check_ids=[RDS_CHECK_ID])

        assert scheduler.run_once() == [RDS_CHECK_ID]
        boto_client.describe_trusted_advisor_checks.assert_not_called()


class TestRefreshLoop:
    """Test the background thread lifecycle."""

    def test_default_interval_is_one_hour(self, advisor_client):
        assert RefreshScheduler(advisor_client).interval == DEFAULT_REFRESH_INTERVAL == 3600

    def test_start_runs_a_cycle_then_waits(self, advisor_client, boto_client):
        scheduler = RefreshScheduler(advisor_client, interval=60)
        scheduler.start()
        try:
            deadline = time.time() + 5
            while scheduler.state != RefreshState.WAITING and time.time() < deadline:
                time.sleep(0.01)

            status = scheduler.get_status()
            assert status["running"] is True
            assert status["state"] == "waiting"
            assert status["thread_alive"] is True
            assert status["cycles"] == 1
        finally:
            scheduler.stop()

        assert scheduler.get_status()["running"] is False
        assert scheduler.state == RefreshState.IDLE

    def test_unexpected_error_keeps_loop_alive(self, advisor_client, boto_client):
        boto_client.describe_trusted_advisor_checks.side_effect = RuntimeError("boom")
        scheduler = RefreshScheduler(advisor_client, interval=60)
        scheduler.start()
        try:
            deadline = time.time() + 5
            while scheduler.state != RefreshState.WAITING and time.time() < deadline:
                time.sleep(0.01)

            assert scheduler.get_status()["thread_alive"] is True
        finally:
            scheduler.stop()
