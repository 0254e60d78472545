import logging

from heatmap_badge.core.observability import configure_logging
from heatmap_badge.core.observability import init_sentry
from heatmap_badge.settings import Settings


def test_init_sentry_skips_when_dsn_missing(monkeypatch) -> None:
    """Sentry initialization is skipped when DSN is absent."""

    calls: list[dict[str, object]] = []

    def fake_init(**kwargs):
        calls.append(kwargs)

    monkeypatch.setattr("heatmap_badge.core.observability.sentry_sdk.init", fake_init)

    init_sentry(Settings(sentry_dsn=None))

    assert calls == []


def test_init_sentry_initializes_sdk_with_settings(monkeypatch) -> None:
    """Sentry SDK is initialized with configured runtime settings."""

    calls: list[dict[str, object]] = []

    def fake_init(**kwargs):
        calls.append(kwargs)

    monkeypatch.setattr("heatmap_badge.core.observability.sentry_sdk.init", fake_init)

    settings = Settings(
        sentry_dsn="https://examplePublicKey@o0.ingest.sentry.io/0",
        environment="production",
        release="abc123",
        sentry_traces_sample_rate=0.2,
    )
    init_sentry(settings)

    assert calls == [
        {
            "dsn": "https://examplePublicKey@o0.ingest.sentry.io/0",
            "environment": "production",
            "release": "abc123",
            "traces_sample_rate": 0.2,
            "send_default_pii": False,
        }
    ]


def test_configure_logging_attaches_one_handler_and_sets_level() -> None:
    """Repeated configuration only adjusts the level."""

    root = logging.getLogger()
    original_level = root.level
    handlers_before = len(root.handlers)

    configure_logging(Settings(log_level="debug"))
    handlers_after_first = len(root.handlers)
    configure_logging(Settings(log_level="WARNING"))

    assert handlers_after_first - handlers_before in {0, 1}
    assert len(root.handlers) == handlers_after_first
    assert root.level == logging.WARNING

    root.setLevel(original_level)
