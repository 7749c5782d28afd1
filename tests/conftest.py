"""Shared fixtures for vuln-tree tests."""

import json
from pathlib import Path

import pytest

from tests.fakes import FakeMetadataSource, packument


@pytest.fixture
def diamond_packuments():
    """app -> (left, right) -> shared, shared -> app (cycle back to the root)."""
    return {
        "app": packument(
            {"1.0.0": {"dependencies": {"left": "^1.0.0", "right": "^2.0.0"}}},
            dist_tags={"latest": "1.0.0"},
        ),
        "left": packument({
            "1.0.0": {"dependencies": {"shared": "^1.0.0"}},
            "1.2.0": {"dependencies": {"shared": "^1.0.0"}},
        }),
        "right": packument({"2.1.0": {"dependencies": {"shared": "~1.1.0"}}}),
        "shared": packument({
            "1.0.0": {},
            "1.1.3": {"dependencies": {"app": "1.0.0"}},
            "2.0.0": {},
        }),
    }


@pytest.fixture
def metadata_source(diamond_packuments):
    return FakeMetadataSource(diamond_packuments)


@pytest.fixture
def registry_dir(tmp_path: Path) -> Path:
    """Directory of packument files, including a scoped package."""
    root = tmp_path / "registry"
    (root / "@scope").mkdir(parents=True)

    documents = {
        "app.json": packument(
            {
                "1.0.0": {"dependencies": {"lodash": "^4.17.0", "@scope/util": "1.x"}},
                "1.1.0-beta.1": {"dependencies": {}},
            },
            dist_tags={"latest": "1.0.0", "next": "1.1.0-beta.1"},
        ),
        "lodash.json": packument({"4.17.19": {}, "4.17.20": {}}),
        "@scope/util.json": packument({"1.4.0": {"optionalDependencies": {"fsevents": "^2.0.0"}}}),
        "fsevents.json": packument({"2.3.2": {"os": ["darwin"]}}),
    }
    for relative, document in documents.items():
        (root / relative).write_text(json.dumps(document), encoding="utf-8")
    return root


@pytest.fixture
def osv_database(tmp_path: Path) -> Path:
    """Directory of OSV records affecting lodash 4.17.20."""
    root = tmp_path / "osv" / "npm"
    root.mkdir(parents=True)

    prototype_pollution = {
        "id": "GHSA-35jh-r3h4-6jhm",
        "summary": "Command Injection in lodash",
        "aliases": ["CVE-2021-23337"],
        "database_specific": {"severity": "HIGH"},
        "affected": [{
            "package": {"ecosystem": "npm", "name": "lodash"},
            "ranges": [{"type": "SEMVER", "events": [{"introduced": "0"}, {"fixed": "4.17.21"}]}],
        }],
    }
    redos = {
        "id": "GHSA-29mw-wpgm-hmr9",
        "details": "Regular Expression Denial of Service in lodash",
        "severity": [{"type": "CVSS_V3", "score": "CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:N/I:N/A:L"}],
        "affected": [{
            "package": {"ecosystem": "npm", "name": "lodash"},
            "versions": ["4.17.20"],
        }],
    }
    (root / "GHSA-35jh-r3h4-6jhm.json").write_text(json.dumps(prototype_pollution), encoding="utf-8")
    (root / "GHSA-29mw-wpgm-hmr9.json").write_text(json.dumps(redos), encoding="utf-8")
    (root / "broken.json").write_text("{not json", encoding="utf-8")
    return tmp_path / "osv"
