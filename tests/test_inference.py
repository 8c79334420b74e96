"""Tests for version/constraint inference."""

from __future__ import annotations

import pytest

from depresolve.core.errors import SourceError, ValidationError, VersionLookupError
from depresolve.engines.inference.constraints import (
    constraint_from_version,
    deduce_constraint,
    infer_constraint,
    lookup_version_for_locked_project,
    lookup_version_for_revision,
)
from depresolve.models.constraint import ANY, SemverConstraint
from depresolve.models.project import ProjectIdentifier
from depresolve.models.version import (
    Branch,
    PairedVersion,
    PlainVersion,
    Revision,
    new_version,
    pair,
)
from fakes import (
    BETA1_TAG,
    IMPORTER_TEST_PROJECT,
    MASTER_REV,
    MULTI_TAGGED_PLAIN_TAG,
    MULTI_TAGGED_REV,
    MULTI_TAGGED_SEMVER_TAG,
    UNTAGGED_REV,
    V1_PATCH_REV,
    V1_PATCH_TAG,
    V1_REV,
    FakeSourceManager,
)

PI = ProjectIdentifier(IMPORTER_TEST_PROJECT)


# ── constraint_from_version ──────────────────────────────────────────────


class TestConstraintFromVersion:
    def test_revision_has_no_constraint(self):
        assert constraint_from_version(Revision(V1_REV)).constraint is None

    def test_branch_constrains_to_itself(self):
        props = constraint_from_version(pair(Branch("master"), MASTER_REV))
        assert props.constraint == Branch("master")

    def test_semver_tag_becomes_caret(self):
        props = constraint_from_version(pair(new_version("v1.0.0"), V1_REV))
        assert isinstance(props.constraint, SemverConstraint)
        assert str(props.constraint) == "^1.0.0"

    def test_plain_tag_constrains_to_itself(self):
        props = constraint_from_version(pair(new_version("stable"), V1_REV))
        assert props.constraint == PlainVersion("stable")


# ── lookup_version_for_locked_project ────────────────────────────────────


class TestLookupVersionForLockedProject:
    @pytest.mark.parametrize(
        "revision, constraint, want",
        [
            (V1_PATCH_REV, None, V1_PATCH_TAG),
            (MULTI_TAGGED_REV, PlainVersion(MULTI_TAGGED_PLAIN_TAG), MULTI_TAGGED_PLAIN_TAG),
            (MULTI_TAGGED_REV, None, MULTI_TAGGED_SEMVER_TAG),
            (MULTI_TAGGED_REV, PlainVersion("thismatchesnothing"), MULTI_TAGGED_SEMVER_TAG),
            (UNTAGGED_REV, Branch("master"), "master"),
            (UNTAGGED_REV, None, UNTAGGED_REV),
        ],
        ids=[
            "match revision to tag",
            "multiple tags narrowed by constraint",
            "multiple tags default to best match",
            "multiple tags with nonmatching constraint",
            "untagged revision falls back to branch constraint",
            "fallback to revision",
        ],
    )
    def test_lookup(self, sm, revision, constraint, want):
        v = lookup_version_for_locked_project(PI, constraint, Revision(revision), sm)
        assert str(v) == want

    def test_branch_fallback_is_paired_with_revision(self, sm):
        v = lookup_version_for_locked_project(PI, Branch("master"), Revision(UNTAGGED_REV), sm)
        assert isinstance(v, PairedVersion)
        assert v.revision == Revision(UNTAGGED_REV)

    def test_list_failure_carries_fallback(self):
        sm = FakeSourceManager(versions={})
        with pytest.raises(VersionLookupError) as exc_info:
            lookup_version_for_locked_project(PI, None, Revision(V1_REV), sm)
        assert exc_info.value.fallback == Revision(V1_REV)
        assert isinstance(exc_info.value, SourceError)


class TestLookupVersionForRevision:
    def test_newest_tag_wins(self, sm):
        v = lookup_version_for_revision(Revision(MULTI_TAGGED_REV), PI, sm)
        assert str(v) == MULTI_TAGGED_SEMVER_TAG

    def test_unknown_revision(self, sm):
        assert lookup_version_for_revision(Revision(UNTAGGED_REV), PI, sm) == Revision(UNTAGGED_REV)


# ── infer_constraint ─────────────────────────────────────────────────────


class TestInferConstraint:
    def _versions(self, sm):
        return sm.list_versions(PI)

    def test_empty_hint_is_any(self):
        assert infer_constraint("", PI, []) is ANY

    def test_branch(self, sm):
        c = infer_constraint("master", PI, self._versions(sm))
        assert isinstance(c, Branch)
        assert c.name == "master"

    def test_branch_named_like_a_version_stays_a_branch(self, sm):
        c = infer_constraint("v2", PI, self._versions(sm))
        assert isinstance(c, Branch)

    def test_semver_hint_gets_implicit_caret(self, sm):
        assert str(infer_constraint("v1.0.0", PI, self._versions(sm))) == "^1.0.0"

    def test_semver_range(self, sm):
        assert str(infer_constraint("~1.0.0", PI, self._versions(sm))) == "~1.0.0"

    def test_plain_tag(self, sm):
        assert infer_constraint(BETA1_TAG, PI, self._versions(sm)) == PlainVersion(BETA1_TAG)

    def test_full_revision(self, sm):
        assert infer_constraint(UNTAGGED_REV, PI, self._versions(sm)) == Revision(UNTAGGED_REV)

    def test_abbreviated_revision(self, sm):
        assert infer_constraint(V1_REV[:8], PI, self._versions(sm)) == Revision(V1_REV)

    def test_unknown_hint(self, sm):
        with pytest.raises(ValidationError):
            infer_constraint("v1.0.0-1-g9b670d1", PI, self._versions(sm))


class TestDeduceConstraint:
    def test_semver(self):
        assert str(deduce_constraint("^1.2.0")) == "^1.2.0"

    def test_git_hash(self):
        assert deduce_constraint(V1_REV) == Revision(V1_REV)

    def test_bzr_revision(self):
        rev = "john@example.com-20170101123456-abcdefghijklmnop"
        assert deduce_constraint(rev) == Revision(rev)

    def test_plain(self):
        assert deduce_constraint("stable") == PlainVersion("stable")

    def test_empty(self):
        assert deduce_constraint("") is ANY
