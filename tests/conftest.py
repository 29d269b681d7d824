from collections.abc import Iterator
from pathlib import Path

import pytest

from subteam_logs.settings import load_settings

CONFIG_TEMPLATE = """
ui:
  title: Test Logs
calendar:
  categories: [Mechanical, Programming, Electrical]
  default_source: local
  session_cookie_name: team_session
  sources:
    - id: local
      type: local
      path: {logs_path}
    - id: google
      type: google_proxy
      url: http://127.0.0.1:9/events
"""

LOGS_YAML = """
logs:
  - date: '2025-01-10'
    title: Built intake prototype
    subteam: Mechanical
    body: Mounted rollers and tested.
  - date: '2025-01-10'
    title: PID tuning
    subteam: Programming
    body: Tuned angular PID for smoother turns.
  - date: '2025-01-10'
    title: Team photo
  - date: '2025-01-12'
    title: Battery tests
    subteam: Electrical
"""


@pytest.fixture
def config_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    logs_path = tmp_path / "logs.yaml"
    logs_path.write_text(LOGS_YAML, encoding="utf-8")
    path = tmp_path / "subteam_logs.yaml"
    path.write_text(CONFIG_TEMPLATE.format(logs_path=logs_path.as_posix()), encoding="utf-8")

    monkeypatch.setenv("SUBTEAM_LOGS_CONFIG_PATH", str(path))
    monkeypatch.setenv("SUBTEAM_LOGS_ENV", "test")
    monkeypatch.setenv("SUBTEAM_LOGS_TIMEZONE", "UTC")
    load_settings.cache_clear()
    yield path
    load_settings.cache_clear()
