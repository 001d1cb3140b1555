# tests/test_policy_loader.py
import copy
import json
from datetime import date

import pytest

from refund_window.core.errors import ConfigurationLookupError
from refund_window.core.models import PolicyTag, RequestChannel
from refund_window.policy import runtime
from refund_window.policy.params.errors import PolicyConfigError, PolicyConfigValidationError
from refund_window.policy.params.loader import (
    POLICY_PATH_ENV,
    default_policy_path,
    load_policy_mapping,
    load_policy_yaml,
)

DOC = {
    "canonical_timezone": "Europe/London",
    "policy_cutoff": "01/02/2020",
    "timezones": {
        "US (PST)": {"timezone": "America/Los_Angeles", "dateFormat": "MM/DD/YYYY"},
        "Europe (CET)": {"timezone": "Europe/Paris", "date_format": "DD/MM/YYYY"},
    },
    "time_limits": {
        "phone": {"old": 4, "new": 24},
        "web-app": {"old": 8, "new": 16},
    },
}

def doc(**changes):
    d = copy.deepcopy(DOC)
    d.update(changes)
    return d

@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch):
    monkeypatch.delenv(POLICY_PATH_ENV, raising=False)

# 1) packaged defaults
def test_packaged_defaults_load():
    p = load_policy_yaml()
    assert p.source == str(default_policy_path())
    assert p.canonical_timezone == "Europe/London"
    assert p.policy_cutoff == date(2020, 2, 1)
    assert p.timezone_for("US (PST)").timezone == "America/Los_Angeles"
    assert p.timezone_for("US (PST)").date_format == "MM/DD/YYYY"
    assert p.time_limit_for(RequestChannel.PHONE, PolicyTag.NEW) == 24
    assert p.time_limit_for(RequestChannel.PHONE, PolicyTag.OLD) == 4
    assert p.time_limit_for(RequestChannel.WEB_APP, PolicyTag.NEW) == 16
    assert p.time_limit_for(RequestChannel.WEB_APP, PolicyTag.OLD) == 8

# 2) explicit path / env override / JSON
def test_env_override(tmp_path, monkeypatch):
    f = tmp_path / "policy.yaml"
    f.write_text(
        "policy_cutoff: '15/06/2022'\n"
        "timezones:\n"
        "  Home:\n"
        "    timezone: Europe/London\n"
        "    dateFormat: DD/MM/YYYY\n"
        "time_limits:\n"
        "  phone: {old: 1, new: 2}\n"
        "  web-app: {old: 3, new: 4}\n",
        encoding="utf-8",
    )
    monkeypatch.setenv(POLICY_PATH_ENV, str(f))
    p = load_policy_yaml()
    assert p.source == str(f)
    assert p.policy_cutoff == date(2022, 6, 15)
    assert p.time_limit_for(RequestChannel.WEB_APP, PolicyTag.NEW) == 4

def test_json_document_with_legacy_keys(tmp_path):
    f = tmp_path / "policy.json"
    f.write_text(json.dumps({
        "policyCutoff": "01/02/2020",
        "timezones": {"US (PST)": {"timezone": "America/Los_Angeles", "dateFormat": "MM/DD/YYYY"}},
        "timeLimits": {
            "phone": {"oTOS": 4, "nTOS": 24},
            "web app": {"oTOS": 8, "nTOS": 16},
        },
        "unused": {"ignored": True},
    }), encoding="utf-8")
    p = load_policy_yaml(str(f))
    assert p.time_limit_for(RequestChannel.WEB_APP, PolicyTag.OLD) == 8
    assert p.time_limit_for(RequestChannel.PHONE, PolicyTag.NEW) == 24

def test_missing_file():
    with pytest.raises(FileNotFoundError):
        load_policy_yaml("/nonexistent/refund-policy.yaml")

def test_non_mapping_document(tmp_path):
    f = tmp_path / "list.yaml"
    f.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(PolicyConfigValidationError):
        load_policy_yaml(str(f))

# 3) guardrails
def _without(channel, tag):
    d = doc()
    del d["time_limits"][channel][tag]
    return d

@pytest.mark.parametrize("name, bad", [
    ("missing cutoff", {k: v for k, v in DOC.items() if k != "policy_cutoff"}),
    ("iso cutoff", doc(policy_cutoff="2020-02-01")),
    ("unknown canonical zone", doc(canonical_timezone="Mars/Olympus")),
    ("unknown location zone", doc(timezones={"X": {"timezone": "Mars/Olympus", "dateFormat": "DD/MM/YYYY"}})),
    ("no locations", doc(timezones={})),
    ("lowercase pattern", doc(timezones={"X": {"timezone": "UTC", "dateFormat": "dd/mm/yyyy"}})),
    ("pattern without day", doc(timezones={"X": {"timezone": "UTC", "dateFormat": "MM/YYYY"}})),
    ("missing phone/old", _without("phone", "old")),
    ("missing web-app/new", _without("web-app", "new")),
    ("zero hours", doc(time_limits={"phone": {"old": 0, "new": 24}, "web-app": {"old": 8, "new": 16}})),
    ("non-integer hours", doc(time_limits={"phone": {"old": 4.5, "new": 24}, "web-app": {"old": 8, "new": 16}})),
    ("unknown channel", doc(time_limits={"fax": {"old": 1, "new": 1}, "phone": {"old": 4, "new": 24},
                                         "web-app": {"old": 8, "new": 16}})),
    ("unknown tag", doc(time_limits={"phone": {"old": 4, "new": 24, "mid": 9}, "web-app": {"old": 8, "new": 16}})),
    ("duplicate channel", doc(time_limits={"phone": {"old": 4, "new": 24}, "web-app": {"old": 8, "new": 16},
                                           "web app": {"old": 8, "new": 16}})),
])
def test_guardrails_reject(name, bad):
    with pytest.raises(PolicyConfigValidationError):
        load_policy_mapping(bad)

def test_validation_error_is_config_error():
    assert issubclass(PolicyConfigValidationError, PolicyConfigError)

# 4) lookups
def test_lookup_errors():
    p = load_policy_mapping(DOC)
    with pytest.raises(ConfigurationLookupError) as ei:
        p.timezone_for("Atlantis")
    assert ei.value.table == "timezone mapping"
    assert p.policy_tag_for(date(2020, 2, 1)) is PolicyTag.OLD
    assert p.policy_tag_for(date(2020, 2, 2)) is PolicyTag.NEW

# 5) runtime cache
def test_runtime_cache(tmp_path, monkeypatch):
    first = runtime.reload_policy_cache()
    assert runtime.get_policy() is first

    f = tmp_path / "other.yaml"
    f.write_text(default_policy_path().read_text(encoding="utf-8").replace("01/02/2020", "01/03/2020"),
                 encoding="utf-8")
    monkeypatch.setenv(POLICY_PATH_ENV, str(f))
    assert runtime.get_policy() is first          # still cached
    second = runtime.reload_policy_cache()
    assert second.policy_cutoff == date(2020, 3, 1)

    monkeypatch.delenv(POLICY_PATH_ENV)
    runtime.reload_policy_cache()
