"""Tests for the legacy import pipeline: shared conversion rules and each format."""

from __future__ import annotations

import json

import pytest
from structlog.testing import capture_logs

from depresolve.core.errors import ConfigLoadError, ValidationError
from depresolve.engines.importers import IMPORTER_REGISTRY, Importer, new_importers
from depresolve.engines.importers.base import BaseImporter, ImportedPackage
from depresolve.engines.importers.gb import GbImporter
from depresolve.engines.importers.glide import GlideImporter
from depresolve.engines.importers.godep import GodepImporter
from depresolve.engines.importers.gom import GomImporter, GomPackage, parse_gomfile
from depresolve.engines.importers.govend import GovendImporter
from depresolve.engines.importers.govendor import GovendorImporter
from depresolve.engines.importers.vndr import VndrImporter, parse_vndr_line
from depresolve.models.constraint import constraint_string
from depresolve.models.project import ProjectIdentifier
from depresolve.models.version import PairedVersion, Revision
from fakes import (
    BETA1_REV,
    BETA1_TAG,
    DEPTEST,
    DEPTEST_MASTER_REV,
    DEPTEST_V1_REV,
    IMPORTER_TEST_PROJECT,
    IMPORTER_TEST_SRC,
    UNTAGGED_REV,
    UNTAGGED_REV_ABBRV,
    V1_CONSTRAINT,
    V1_PATCH_REV,
    V1_PATCH_TAG,
    V1_REV,
    V1_TAG,
    V2_BRANCH,
    V2_PATCH_REV,
    V2_PATCH_TAG,
    V2_REV,
    FakeSourceManager,
)

ROOT = "github.com/golang/notexist"


class _TestImporter(BaseImporter):
    name = "test"


def _pkg(name=IMPORTER_TEST_PROJECT, **kw) -> ImportedPackage:
    return ImportedPackage(name=name, **kw)


def _locked(lock, root):
    """Split a locked project's version into (version string, revision string)."""
    lp = lock.project(root)
    assert lp is not None
    if isinstance(lp.version, PairedVersion):
        return str(lp.version), str(lp.version.revision)
    assert isinstance(lp.version, Revision)
    return "", str(lp.version)


def _events(logs, event):
    return [e for e in logs if e["event"] == event]


# ── Shared conversion rules ──────────────────────────────────────────────


class TestImportPackages:
    @pytest.mark.parametrize(
        "packages, from_lock, want_constraint, want_version, want_revision",
        [
            ([_pkg(lock_hint=BETA1_REV, constraint_hint=BETA1_TAG)], False, "*", BETA1_TAG, BETA1_REV),
            ([_pkg(lock_hint=BETA1_TAG)], False, "*", BETA1_TAG, BETA1_REV),
            ([_pkg(lock_hint=UNTAGGED_REV, constraint_hint=V1_CONSTRAINT)], False, "*", "", UNTAGGED_REV),
            ([_pkg(lock_hint=UNTAGGED_REV, constraint_hint="master")], False, "master", "master", UNTAGGED_REV),
            ([_pkg(lock_hint=V2_REV)], True, V2_BRANCH, V2_BRANCH, V2_REV),
            ([_pkg(lock_hint=V1_REV)], True, V1_CONSTRAINT, V1_TAG, V1_REV),
            ([_pkg(lock_hint=V1_TAG)], True, V1_CONSTRAINT, V1_TAG, V1_REV),
            ([_pkg(lock_hint=V1_PATCH_REV, constraint_hint=V1_CONSTRAINT)], False, V1_CONSTRAINT, V1_PATCH_TAG, V1_PATCH_REV),
            ([_pkg(lock_hint=V2_PATCH_REV, constraint_hint=V2_BRANCH)], False, V2_BRANCH, V2_PATCH_TAG, V2_PATCH_REV),
            ([_pkg(lock_hint=V1_REV, constraint_hint=V1_REV)], False, "*", V1_TAG, V1_REV),
            ([_pkg(lock_hint=V1_REV, constraint_hint="master")], False, "master", V1_TAG, V1_REV),
            ([_pkg(lock_hint=V1_REV, constraint_hint="^2.0.0")], False, "*", V1_TAG, V1_REV),
            ([_pkg(lock_hint=UNTAGGED_REV, constraint_hint=UNTAGGED_REV_ABBRV)], False, "*", "", UNTAGGED_REV),
            (
                [
                    _pkg(IMPORTER_TEST_PROJECT + "/subpkA", constraint_hint="master"),
                    _pkg(lock_hint=UNTAGGED_REV),
                ],
                False,
                "master",
                "master",
                UNTAGGED_REV,
            ),
            (
                [
                    _pkg(IMPORTER_TEST_PROJECT + "/subpkgA", lock_hint=UNTAGGED_REV),
                    _pkg(IMPORTER_TEST_PROJECT + "/subpkgB", lock_hint=V1_REV),
                ],
                False,
                "*",
                "",
                UNTAGGED_REV,
            ),
        ],
        ids=[
            "tag constraints are ignored",
            "tag lock hints lock to tagged revision",
            "untagged revision ignores range constraint",
            "untagged revision keeps branch constraint",
            "HEAD revisions default constraint to the matching branch",
            "semver tagged revisions default to caret",
            "semver lock hint defaults constraint to caret",
            "semver constraint hint",
            "semver prerelease lock hint",
            "revision constraints are ignored",
            "branch constraint hint",
            "non-matching semver constraint is ignored",
            "git describe constraint is ignored",
            "consolidate subpackages under root",
            "first duplicate package wins",
        ],
    )
    def test_convert(self, ctx, sm, packages, from_lock, want_constraint, want_version, want_revision):
        manifest, lock = _TestImporter(ctx, sm).import_packages(packages, from_lock)

        assert list(manifest.constraints) == [IMPORTER_TEST_PROJECT]
        props = manifest.constraints[IMPORTER_TEST_PROJECT]
        assert constraint_string(props.constraint) == want_constraint
        assert props.source == ""

        assert len(lock.projects) == 1
        assert _locked(lock, IMPORTER_TEST_PROJECT) == (want_version, want_revision)

    def test_empty_name_is_fatal(self, ctx, sm):
        with pytest.raises(ValidationError, match="package name is required"):
            _TestImporter(ctx, sm).import_packages([_pkg(name="")], False)

    def test_undeducible_root_is_skipped(self, ctx, sm):
        with capture_logs() as logs:
            manifest, lock = _TestImporter(ctx, sm).import_packages(
                [_pkg("notahost/pkg", lock_hint=V1_REV), _pkg(lock_hint=V1_TAG)], False
            )
        assert list(manifest.constraints) == [IMPORTER_TEST_PROJECT]
        assert len(lock.projects) == 1
        skipped = _events(logs, "importer.skip_project")
        assert skipped[0]["log_level"] == "warning"
        assert "Cannot determine the project root for notahost/pkg" in skipped[0]["reason"]

    def test_offline_revision_is_locked_bare(self, ctx):
        offline = FakeSourceManager(versions={})
        with capture_logs() as logs:
            manifest, lock = _TestImporter(ctx, offline).import_packages(
                [_pkg(DEPTEST, lock_hint=DEPTEST_V1_REV)], False
            )
        assert constraint_string(manifest.constraints[DEPTEST].constraint) == "*"
        assert lock.project(DEPTEST).version == Revision(DEPTEST_V1_REV)
        failed = _events(logs, "importer.version_lookup_failed")
        assert failed[0]["log_level"] == "warning"
        assert "locking the revision only" in failed[0]["error"]

    def test_offline_tag_hint_is_kept(self, ctx, sm):
        manifest, lock = _TestImporter(ctx, sm).import_packages(
            [_pkg("github.com/unknown/project", lock_hint="v1.0.0")], True
        )
        assert list(manifest.constraints) == ["github.com/unknown/project"]
        assert _locked(lock, "github.com/unknown/project") == ("", "v1.0.0")

    def test_alternate_source_is_kept(self, ctx, sm):
        manifest, lock = _TestImporter(ctx, sm).import_packages(
            [_pkg(source=IMPORTER_TEST_SRC, lock_hint=V1_REV)], False
        )
        assert manifest.constraints[IMPORTER_TEST_PROJECT].source == IMPORTER_TEST_SRC
        assert lock.projects[0].ident.source == IMPORTER_TEST_SRC

    def test_default_source_is_dropped(self, ctx, sm):
        manifest, lock = _TestImporter(ctx, sm).import_packages(
            [_pkg(source="https://" + IMPORTER_TEST_PROJECT, lock_hint=V1_REV)], False
        )
        assert manifest.constraints[IMPORTER_TEST_PROJECT].source == ""
        assert lock.projects[0].ident.source == ""

    def test_vendored_source_is_dropped_with_warning(self, ctx, sm):
        with capture_logs() as logs:
            manifest, _ = _TestImporter(ctx, sm).import_packages(
                [_pkg(source="github.com/other/proj/vendor/" + IMPORTER_TEST_PROJECT, lock_hint=V1_REV)],
                False,
            )
        assert manifest.constraints[IMPORTER_TEST_PROJECT].source == ""
        assert _events(logs, "importer.source_ignored")

    def test_no_lock_hint_means_no_lock(self, ctx, sm):
        manifest, lock = _TestImporter(ctx, sm).import_packages(
            [_pkg(constraint_hint=V1_CONSTRAINT)], True
        )
        assert constraint_string(manifest.constraints[IMPORTER_TEST_PROJECT].constraint) == V1_CONSTRAINT
        assert lock.projects == []

    def test_feedback(self, ctx, sm):
        _TestImporter(ctx, sm).import_packages([_pkg(lock_hint=V1_REV)], True)
        messages = [m for event in ctx.feedback for m in event.messages()]
        assert messages == [
            f"Using ^1.0.0 as initial constraint for imported dep {IMPORTER_TEST_PROJECT}",
            f"Trying v1.0.0 (d0c2964) as initial lock for imported dep {IMPORTER_TEST_PROJECT}",
        ]

    def test_find_tag(self, ctx, sm):
        importer = _TestImporter(ctx, sm)
        pi = ProjectIdentifier(IMPORTER_TEST_PROJECT)
        assert str(importer.find_tag(pi, BETA1_TAG)) == BETA1_TAG
        assert importer.find_tag(pi, V1_PATCH_TAG).revision == Revision(V1_PATCH_REV)
        assert importer.find_tag(pi, UNTAGGED_REV) is None
        assert importer.find_tag(pi, V2_BRANCH) is None


# ── Registry ─────────────────────────────────────────────────────────────


class TestRegistry:
    def test_precedence_order(self):
        assert list(IMPORTER_REGISTRY) == ["glide", "godep", "govend", "govendor", "vndr", "gb", "gom"]

    def test_new_importers(self, ctx, sm):
        importers = new_importers(ctx, sm)
        assert [i.name for i in importers] == list(IMPORTER_REGISTRY)
        assert all(isinstance(i, Importer) for i in importers)

    def test_no_metadata_in_empty_dir(self, ctx, sm, tmp_path):
        assert not any(i.has_metadata(tmp_path) for i in new_importers(ctx, sm))


# ── glide ────────────────────────────────────────────────────────────────


class TestGlideImporter:
    def _write(self, tmp_path, yaml_text, lock_text=None):
        (tmp_path / "glide.yaml").write_text(yaml_text)
        if lock_text is not None:
            (tmp_path / "glide.lock").write_text(lock_text)
        return tmp_path

    def test_project(self, ctx, sm, tmp_path):
        d = self._write(
            tmp_path,
            f"package: {ROOT}\nimport:\n"
            f"- package: {DEPTEST}\n  repo: https://github.com/sdboyer/deptest.git\n  version: v1.0.0\n",
            f"imports:\n- name: {DEPTEST}\n  repo: https://github.com/sdboyer/deptest.git\n"
            f"  version: {DEPTEST_V1_REV}\n",
        )
        importer = GlideImporter(ctx, sm)
        assert importer.has_metadata(d)
        manifest, lock = importer.import_config(d, ROOT)

        props = manifest.constraints[DEPTEST]
        assert constraint_string(props.constraint) == "^1.0.0"
        assert props.source == "https://github.com/sdboyer/deptest.git"
        assert _locked(lock, DEPTEST) == ("v1.0.0", DEPTEST_V1_REV)

    def test_missing_lock_file(self, ctx, sm, tmp_path):
        d = self._write(tmp_path, f"import:\n- package: {DEPTEST}\n  version: v1.0.0\n")
        manifest, lock = GlideImporter(ctx, sm).import_config(d, ROOT)
        assert constraint_string(manifest.constraints[DEPTEST].constraint) == "^1.0.0"
        assert lock.projects == []

    def test_test_imports(self, ctx, sm, tmp_path):
        d = self._write(tmp_path, f"testImport:\n- package: {DEPTEST}/sub\n  version: v1.0.0\n")
        manifest, _ = GlideImporter(ctx, sm).import_config(d, ROOT)
        assert list(manifest.constraints) == [DEPTEST]

    def test_ignored_package(self, ctx, sm, tmp_path):
        d = self._write(tmp_path, f"ignore:\n- {DEPTEST}\n")
        manifest, _ = GlideImporter(ctx, sm).import_config(d, ROOT)
        assert manifest.ignored == [DEPTEST]

    def test_exclude_dirs(self, ctx, sm, tmp_path):
        d = self._write(tmp_path, "excludeDirs:\n- samples\n")
        manifest, _ = GlideImporter(ctx, sm).import_config(d, ROOT)
        assert manifest.ignored == [ROOT + "/samples"]

    def test_ignored_packages_are_not_repeated(self, ctx, sm, tmp_path):
        d = self._write(
            tmp_path,
            f"package: {ROOT}\nignore:\n- {DEPTEST}\n- {DEPTEST}\n- {ROOT}/samples\n"
            "excludeDirs:\n- samples\n",
        )
        manifest, _ = GlideImporter(ctx, sm).import_config(d, ROOT)
        assert manifest.ignored == [DEPTEST, ROOT + "/samples"]

    def test_exclude_dirs_use_canonical_root(self, ctx, sm, tmp_path):
        d = self._write(
            tmp_path, "package: github.com/golang/mismatched-package-name\nexcludeDirs:\n- samples\n"
        )
        with capture_logs() as logs:
            manifest, _ = GlideImporter(ctx, sm).import_config(d, ROOT)
        assert manifest.ignored == [ROOT + "/samples"]
        assert _events(logs, "glide.package_mismatch")

    def test_empty_package_name(self, ctx, sm, tmp_path):
        d = self._write(tmp_path, "import:\n- package: ''\n")
        with pytest.raises(ValidationError):
            GlideImporter(ctx, sm).import_config(d, ROOT)

    def test_unused_fields_warn(self, ctx, sm, tmp_path):
        d = self._write(
            tmp_path,
            f"import:\n- package: {DEPTEST}\n  version: v1.0.0\n"
            "  os: linux\n  arch: amd64\n  subpackages:\n  - foo\n",
        )
        with capture_logs() as logs:
            GlideImporter(ctx, sm).import_config(d, ROOT)
        fields = {e["field"] for e in _events(logs, "glide.unsupported_field")}
        assert fields == {"os", "arch", "subpackages"}

    def test_unparsable_yaml(self, ctx, sm, tmp_path):
        d = self._write(tmp_path, "import: [unclosed\n")
        with pytest.raises(ConfigLoadError):
            GlideImporter(ctx, sm).import_config(d, ROOT)


# ── godep ────────────────────────────────────────────────────────────────


class TestGodepImporter:
    def _write(self, tmp_path, deps):
        (tmp_path / "Godeps").mkdir()
        (tmp_path / "Godeps" / "Godeps.json").write_text(
            json.dumps({"ImportPath": ROOT, "GoVersion": "go1.8", "Deps": deps})
        )
        return tmp_path

    def test_convert(self, ctx, sm, tmp_path):
        d = self._write(tmp_path, [{"ImportPath": DEPTEST, "Rev": DEPTEST_V1_REV, "Comment": "v1.0.0"}])
        importer = GodepImporter(ctx, sm)
        assert importer.has_metadata(d)
        manifest, lock = importer.import_config(d, ROOT)
        assert constraint_string(manifest.constraints[DEPTEST].constraint) == "^1.0.0"
        assert _locked(lock, DEPTEST) == ("v1.0.0", DEPTEST_V1_REV)

    def test_constraint_defaults_from_lock(self, ctx, sm, tmp_path):
        d = self._write(tmp_path, [{"ImportPath": DEPTEST, "Rev": DEPTEST_V1_REV}])
        manifest, _ = GodepImporter(ctx, sm).import_config(d, ROOT)
        assert constraint_string(manifest.constraints[DEPTEST].constraint) == "^1.0.0"

    def test_subpackages_collapse(self, ctx, sm, tmp_path):
        d = self._write(
            tmp_path,
            [
                {"ImportPath": DEPTEST, "Rev": DEPTEST_V1_REV},
                {"ImportPath": DEPTEST + "/foo", "Rev": DEPTEST_V1_REV},
            ],
        )
        _, lock = GodepImporter(ctx, sm).import_config(d, ROOT)
        assert [lp.ident.root for lp in lock.projects] == [DEPTEST]

    def test_empty_import_path(self, ctx, sm, tmp_path):
        d = self._write(tmp_path, [{"ImportPath": "", "Rev": DEPTEST_V1_REV}])
        with pytest.raises(ValidationError, match="invalid godep configuration"):
            GodepImporter(ctx, sm).import_config(d, ROOT)

    def test_empty_rev(self, ctx, sm, tmp_path):
        d = self._write(tmp_path, [{"ImportPath": DEPTEST, "Rev": ""}])
        with pytest.raises(ValidationError):
            GodepImporter(ctx, sm).import_config(d, ROOT)

    def test_bad_json(self, ctx, sm, tmp_path):
        (tmp_path / "Godeps").mkdir()
        (tmp_path / "Godeps" / "Godeps.json").write_text("{not json")
        with pytest.raises(ConfigLoadError):
            GodepImporter(ctx, sm).import_config(tmp_path, ROOT)


# ── govend ───────────────────────────────────────────────────────────────


class TestGovendImporter:
    def test_convert(self, ctx, sm, tmp_path):
        (tmp_path / "vendor.yml").write_text(f"vendors:\n- path: {DEPTEST}\n  rev: {DEPTEST_V1_REV}\n")
        importer = GovendImporter(ctx, sm)
        assert importer.has_metadata(tmp_path)
        manifest, lock = importer.import_config(tmp_path, ROOT)
        assert constraint_string(manifest.constraints[DEPTEST].constraint) == "^1.0.0"
        assert _locked(lock, DEPTEST) == ("v1.0.0", DEPTEST_V1_REV)

    @pytest.mark.parametrize(
        "entry",
        [f"- path: {DEPTEST}\n", f"- rev: {DEPTEST_V1_REV}\n"],
        ids=["missing rev", "missing path"],
    )
    def test_required_fields(self, ctx, sm, tmp_path, entry):
        (tmp_path / "vendor.yml").write_text("vendors:\n" + entry)
        with pytest.raises(ValidationError, match="path and rev are required"):
            GovendImporter(ctx, sm).import_config(tmp_path, ROOT)


# ── govendor ─────────────────────────────────────────────────────────────


class TestGovendorImporter:
    def _write(self, tmp_path, data):
        (tmp_path / "vendor").mkdir()
        (tmp_path / "vendor" / "vendor.json").write_text(json.dumps(data))
        return tmp_path

    def test_convert_project(self, ctx, sm, tmp_path):
        d = self._write(
            tmp_path,
            {"package": [{"path": DEPTEST, "revision": DEPTEST_V1_REV, "version": "v1.0.0"}]},
        )
        importer = GovendorImporter(ctx, sm)
        assert importer.has_metadata(d)
        manifest, lock = importer.import_config(d, ROOT)
        assert constraint_string(manifest.constraints[DEPTEST].constraint) == "^1.0.0"
        assert _locked(lock, DEPTEST) == ("v1.0.0", DEPTEST_V1_REV)

    def test_ignore(self, ctx, sm, tmp_path):
        d = self._write(
            tmp_path, {"ignore": f"test {DEPTEST} linux_amd64 github.com/sdboyer/", "package": []}
        )
        with capture_logs() as logs:
            manifest, _ = GovendorImporter(ctx, sm).import_config(d, ROOT)
        assert manifest.ignored == [DEPTEST]
        dropped = {e["item"] for e in _events(logs, "govendor.ignore_dropped")}
        assert dropped == {"test", "linux_amd64", "github.com/sdboyer/"}

    def test_origin_in_vendor_is_dropped(self, ctx, sm, tmp_path):
        d = self._write(
            tmp_path,
            {
                "package": [
                    {
                        "path": DEPTEST,
                        "origin": "github.com/other/proj/vendor/" + DEPTEST,
                        "revision": DEPTEST_V1_REV,
                    }
                ]
            },
        )
        _, lock = GovendorImporter(ctx, sm).import_config(d, ROOT)
        assert lock.projects[0].ident.source == ""

    def test_empty_package_path(self, ctx, sm, tmp_path):
        d = self._write(tmp_path, {"package": [{"path": ""}]})
        with pytest.raises(ValidationError):
            GovendorImporter(ctx, sm).import_config(d, ROOT)

    def test_empty_revision(self, ctx, sm, tmp_path):
        d = self._write(tmp_path, {"package": [{"path": DEPTEST, "revision": ""}]})
        with pytest.raises(ValidationError):
            GovendorImporter(ctx, sm).import_config(d, ROOT)


# ── vndr ─────────────────────────────────────────────────────────────────


class TestVndrImporter:
    def test_parse_line(self):
        pkg = parse_vndr_line(f"{DEPTEST} {DEPTEST_V1_REV} https://github.com/sdboyer/deptest.git # ok")
        assert (pkg.name, pkg.lock_hint, pkg.source) == (
            DEPTEST,
            DEPTEST_V1_REV,
            "https://github.com/sdboyer/deptest.git",
        )

    def test_parse_blank_and_comment_lines(self):
        assert parse_vndr_line("") is None
        assert parse_vndr_line("   # just a comment") is None

    @pytest.mark.parametrize("line", [DEPTEST, f"{DEPTEST} a b c"])
    def test_parse_bad_line(self, line):
        with pytest.raises(ConfigLoadError, match="invalid config format"):
            parse_vndr_line(line)

    def test_convert(self, ctx, sm, tmp_path):
        (tmp_path / "vendor.conf").write_text(
            "# vndr config\n\n"
            f"{DEPTEST} {DEPTEST_V1_REV}\n"
            f"{IMPORTER_TEST_PROJECT} {V1_TAG}  # pinned by tag\n"
        )
        importer = VndrImporter(ctx, sm)
        assert importer.has_metadata(tmp_path)
        manifest, lock = importer.import_config(tmp_path, ROOT)
        assert constraint_string(manifest.constraints[DEPTEST].constraint) == "^1.0.0"
        assert _locked(lock, DEPTEST) == ("v1.0.0", DEPTEST_V1_REV)
        assert _locked(lock, IMPORTER_TEST_PROJECT) == (V1_TAG, V1_REV)

    def test_bad_file(self, ctx, sm, tmp_path):
        (tmp_path / "vendor.conf").write_text(f"{DEPTEST}\n")
        with pytest.raises(ConfigLoadError):
            VndrImporter(ctx, sm).import_config(tmp_path, ROOT)


# ── gb ───────────────────────────────────────────────────────────────────


class TestGbImporter:
    def _write(self, tmp_path, deps):
        (tmp_path / "vendor").mkdir()
        (tmp_path / "vendor" / "manifest").write_text(json.dumps({"version": 0, "dependencies": deps}))
        return tmp_path

    def test_convert(self, ctx, sm, tmp_path):
        repo = "https://github.com/sdboyer/deptest.git"
        d = self._write(
            tmp_path,
            [{"importpath": DEPTEST, "repository": repo, "revision": DEPTEST_V1_REV, "branch": "HEAD"}],
        )
        importer = GbImporter(ctx, sm)
        assert importer.has_metadata(d)
        manifest, lock = importer.import_config(d, ROOT)

        props = manifest.constraints[DEPTEST]
        assert constraint_string(props.constraint) == "^1.0.0"
        assert props.source == repo
        assert lock.projects[0].ident.source == repo
        assert _locked(lock, DEPTEST) == ("v1.0.0", DEPTEST_V1_REV)

    def test_branch_is_the_constraint(self, ctx, sm, tmp_path):
        d = self._write(
            tmp_path,
            [{"importpath": DEPTEST + "/sub", "revision": DEPTEST_MASTER_REV, "branch": "master"}],
        )
        manifest, lock = GbImporter(ctx, sm).import_config(d, ROOT)
        assert constraint_string(manifest.constraints[DEPTEST].constraint) == "master"
        assert _locked(lock, DEPTEST) == ("master", DEPTEST_MASTER_REV)

    def test_subpackage_entries_collapse(self, ctx, sm, tmp_path):
        d = self._write(
            tmp_path,
            [
                {"importpath": DEPTEST + "/a", "revision": DEPTEST_V1_REV},
                {"importpath": DEPTEST + "/b", "revision": DEPTEST_V1_REV},
            ],
        )
        _, lock = GbImporter(ctx, sm).import_config(d, ROOT)
        assert [lp.ident.root for lp in lock.projects] == [DEPTEST]

    @pytest.mark.parametrize(
        "dep, match",
        [
            ({"importpath": ""}, "import path is required"),
            ({"importpath": DEPTEST}, "revision is required"),
        ],
        ids=["missing import path", "missing revision"],
    )
    def test_bad_input(self, ctx, sm, tmp_path, dep, match):
        d = self._write(tmp_path, [dep])
        with pytest.raises(ValidationError, match=match):
            GbImporter(ctx, sm).import_config(d, ROOT)


# ── gom ──────────────────────────────────────────────────────────────────


GOMFILE = """\
# comment
gom 'github.com/sdboyer/deptest', :commit => 'ff2948a2ac8f538c4ecd55962e919d1e13e74baf'
gom "github.com/carolynvs/deptest-importers", :tag => 'v1.0.0', :goos => [:linux, :darwin]

group :test, :development do
  gom 'github.com/other/lib/sub', :branch => 'dev'
end
"""


class TestParseGomfile:
    def test_parse(self):
        packages = parse_gomfile(GOMFILE)
        assert [p.name for p in packages] == [DEPTEST, IMPORTER_TEST_PROJECT, "github.com/other/lib/sub"]
        assert packages[0].options == {"commit": DEPTEST_V1_REV}
        assert packages[1].options == {"tag": "v1.0.0", "goos": ["linux", "darwin"]}
        assert packages[2].options == {"branch": "dev", "group": ["test", "development"]}

    def test_no_options(self):
        assert parse_gomfile("gom 'github.com/a/b'\n") == [GomPackage("github.com/a/b")]

    @pytest.mark.parametrize(
        "text",
        ["require 'github.com/a/b'\n", "end\n", "gom github.com/a/b\n"],
        ids=["unknown statement", "unmatched end", "unquoted name"],
    )
    def test_syntax_error(self, text):
        with pytest.raises(ConfigLoadError, match="syntax error at line 1"):
            parse_gomfile(text)


class TestGomImporter:
    def test_convert(self, ctx, sm, tmp_path):
        (tmp_path / "Gomfile").write_text(GOMFILE)
        importer = GomImporter(ctx, sm)
        assert importer.has_metadata(tmp_path)
        manifest, lock = importer.import_config(tmp_path, ROOT)

        assert constraint_string(manifest.constraints[DEPTEST].constraint) == "^1.0.0"
        assert _locked(lock, DEPTEST) == ("v1.0.0", DEPTEST_V1_REV)
        assert constraint_string(manifest.constraints[IMPORTER_TEST_PROJECT].constraint) == V1_CONSTRAINT
        assert _locked(lock, IMPORTER_TEST_PROJECT) == (V1_TAG, V1_REV)

    def test_branch_without_commit(self, ctx, sm, tmp_path):
        (tmp_path / "Gomfile").write_text(f"gom '{DEPTEST}', :branch => '0.8.0'\n")
        manifest, lock = GomImporter(ctx, sm).import_config(tmp_path, ROOT)
        assert constraint_string(manifest.constraints[DEPTEST].constraint) == "^0.8.0"
        assert lock.projects == []

    def test_lock_file_preferred(self, ctx, sm, tmp_path):
        (tmp_path / "Gomfile").write_text(f"gom '{DEPTEST}'\n")
        (tmp_path / "Gomfile.lock").write_text(f"gom '{DEPTEST}', :commit => '{DEPTEST_V1_REV}'\n")
        _, lock = GomImporter(ctx, sm).import_config(tmp_path, ROOT)
        assert _locked(lock, DEPTEST) == ("v1.0.0", DEPTEST_V1_REV)

    def test_empty_name(self, ctx, sm, tmp_path):
        (tmp_path / "Gomfile").write_text("gom ''\n")
        with pytest.raises(ValidationError, match="invalid gom configuration"):
            GomImporter(ctx, sm).import_config(tmp_path, ROOT)
