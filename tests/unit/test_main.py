from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from lab_etl.main import cli, dispatch, main
from lab_etl.pipeline.exceptions import FatalTransactionError


class TestDispatch:
    def test_no_target_runs_everything(self) -> None:
        runner = MagicMock()

        dispatch(runner, None)

        runner.run_all.assert_called_once_with()

    def test_all_runs_everything(self) -> None:
        runner = MagicMock()

        dispatch(runner, "all")

        runner.run_all.assert_called_once_with()

    def test_entity_name_runs_that_entity(self) -> None:
        runner = MagicMock()

        dispatch(runner, "dental-groups")

        runner.run_entity.assert_called_once_with("dental-groups")

    def test_other_target_is_an_orders_file(self) -> None:
        runner = MagicMock()

        dispatch(runner, "orders_2026_10_01.csv")

        runner.run_file.assert_called_once_with("orders", "orders_2026_10_01.csv")


@patch("lab_etl.main.Log")
@patch("lab_etl.main.build_s3_client")
@patch("lab_etl.main.build_runner")
@patch("lab_etl.main.create_pool")
@patch("lab_etl.main.Settings")
class TestMain:
    def test_success_returns_zero_and_closes_pool(
        self,
        _settings: MagicMock,
        create_pool: MagicMock,
        build_runner: MagicMock,
        _s3: MagicMock,
        _log: MagicMock,
    ) -> None:
        assert main("products") == 0
        build_runner.return_value.run_entity.assert_called_once_with("products")
        create_pool.return_value.close.assert_called_once_with()

    def test_fatal_error_returns_one(
        self,
        _settings: MagicMock,
        create_pool: MagicMock,
        build_runner: MagicMock,
        _s3: MagicMock,
        log: MagicMock,
    ) -> None:
        build_runner.return_value.run_file.side_effect = FatalTransactionError("rolled back")

        assert main("a.csv") == 1
        log.error.assert_called_once()
        create_pool.return_value.close.assert_called_once_with()

    def test_pool_failure_returns_one(
        self,
        _settings: MagicMock,
        create_pool: MagicMock,
        build_runner: MagicMock,
        _s3: MagicMock,
        _log: MagicMock,
    ) -> None:
        create_pool.side_effect = RuntimeError("db down")

        assert main() == 1
        build_runner.assert_not_called()


class TestCli:
    def test_exit_code_follows_main(self) -> None:
        with patch("lab_etl.main.main", return_value=1) as mock_main:
            result = CliRunner().invoke(cli, ["orders"])

        assert result.exit_code == 1
        mock_main.assert_called_once_with("orders")

    def test_target_is_optional(self) -> None:
        with patch("lab_etl.main.main", return_value=0) as mock_main:
            result = CliRunner().invoke(cli, [])

        assert result.exit_code == 0
        mock_main.assert_called_once_with(None)
