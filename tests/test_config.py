"""Settings tests: environment variables override defaults."""

from enrollment_workflow.config import WorkflowSettings, load_settings


class TestLoadSettings:

    def test_defaults(self, monkeypatch):
        for name in (
            "WORKFLOW_EVALUATE_ALL_GROUPS",
            "WORKFLOW_AUTO_SELECT_SINGLE_OPTION",
            "WORKFLOW_LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.evaluate_all_groups is False
        assert settings.auto_select_single_option is False
        assert settings.log_level == "INFO"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("WORKFLOW_ASK_TIMEOUT_SECONDS", "0.5")
        monkeypatch.setenv("WORKFLOW_EVALUATE_ALL_GROUPS", "true")
        monkeypatch.setenv("WORKFLOW_AUTO_SELECT_SINGLE_OPTION", "1")
        monkeypatch.setenv("WORKFLOW_STATUS_RESET_SECONDS", "0")
        monkeypatch.setenv("WORKFLOW_LOG_LEVEL", "debug")
        assert load_settings() == WorkflowSettings(
            ask_timeout_seconds=0.5,
            evaluate_all_groups=True,
            auto_select_single_option=True,
            status_reset_seconds=0.0,
            log_level="DEBUG",
        )
