"""Unit tests for post-merge and post-checkout detection."""

import pytest

from artisync.detection import PostCheckoutDetector, PostMergeDetector
from artisync.detection.post_checkout import NULL_SHA
from artisync.utils.git import GitClient


@pytest.fixture
def merged_repo(git_repo):
    """Repository whose HEAD is a --no-ff merge of `feature` into main."""
    git_repo.checkout("-b", "feature")
    git_repo.commit("write api docs", {"docs/api.md": "# API\n"})
    git_repo.checkout("main")
    git_repo.commit("unrelated", {"CHANGELOG.md": "- init\n"})
    git_repo.base = git_repo.head()
    git_repo.merge("feature")
    return git_repo


class TestPostMergeDetector:
    """Tests for merge metadata extraction."""

    def test_merge_on_target_branch(self, merged_repo) -> None:
        detector = PostMergeDetector(GitClient(merged_repo.path), target_branches=["main"])

        metadata = detector.detect(0)

        assert metadata.is_relevant_transition is True
        assert metadata.previous_ref == merged_repo.base
        assert metadata.new_ref == merged_repo.head()
        assert metadata.target_branch == "main"
        assert metadata.source_branch == "feature"
        assert metadata.is_squash is False
        assert metadata.reason == "Merge from feature into main"

    def test_any_branch_when_no_targets(self, merged_repo) -> None:
        metadata = PostMergeDetector(GitClient(merged_repo.path)).detect()

        assert metadata.is_relevant_transition is True

    def test_not_on_target_branch(self, merged_repo) -> None:
        detector = PostMergeDetector(GitClient(merged_repo.path), target_branches=["release"])

        metadata = detector.detect(0)

        assert metadata.is_relevant_transition is False
        assert metadata.reason.startswith("Not on a target branch (current: main")

    def test_pr_number(self, git_repo) -> None:
        git_repo.checkout("-b", "feature")
        git_repo.commit("docs", {"docs/api.md": "# API\n"})
        git_repo.checkout("main")
        git_repo.merge("feature", "Merge pull request #12 from org/feature")

        metadata = PostMergeDetector(GitClient(git_repo.path), require_pr=True).detect(0)

        assert metadata.is_relevant_transition is True
        assert metadata.pr_number == 12

    def test_require_pr_without_reference(self, merged_repo) -> None:
        metadata = PostMergeDetector(GitClient(merged_repo.path), require_pr=True).detect(0)

        assert metadata.is_relevant_transition is False
        assert metadata.pr_number is None
        assert "require_pr" in metadata.reason

    def test_head_did_not_move(self, merged_repo) -> None:
        merged_repo.git("update-ref", "ORIG_HEAD", "HEAD")

        metadata = PostMergeDetector(GitClient(merged_repo.path)).detect(0)

        assert metadata.is_relevant_transition is False
        assert metadata.reason == "HEAD did not move"

    def test_squash_not_committed(self, merged_repo) -> None:
        merged_repo.git("update-ref", "ORIG_HEAD", "HEAD")

        metadata = PostMergeDetector(GitClient(merged_repo.path)).detect(1)

        assert metadata.is_squash is True
        assert metadata.is_relevant_transition is False
        assert metadata.reason == "Squash merge not committed yet"

    def test_fast_forward(self, git_repo) -> None:
        base = git_repo.head()
        git_repo.checkout("-b", "feature")
        git_repo.commit("docs", {"docs/api.md": "# API\n"})
        git_repo.checkout("main")
        git_repo.git("merge", "-q", "--ff-only", "feature")

        metadata = PostMergeDetector(GitClient(git_repo.path)).detect(0)

        assert metadata.is_relevant_transition is True
        assert metadata.previous_ref == base
        assert metadata.source_branch == "feature"


class TestPostCheckoutDetector:
    """Tests for checkout metadata extraction."""

    def test_branch_checkout(self, git_repo) -> None:
        previous = git_repo.head()
        git_repo.checkout("-b", "feature")
        new = git_repo.commit("docs", {"docs/api.md": "# API\n"})
        git_repo.checkout("main")

        metadata = PostCheckoutDetector(GitClient(git_repo.path)).detect(new, previous, 1)

        assert metadata.is_relevant_transition is True
        assert metadata.branch_name == "main"
        assert metadata.reason == "Checked out main"

    def test_file_checkout(self, git_repo) -> None:
        head = git_repo.head()

        metadata = PostCheckoutDetector(GitClient(git_repo.path)).detect(head, head, 0)

        assert metadata.is_relevant_transition is False
        assert metadata.is_branch_checkout is False
        assert metadata.reason == "File checkout (not branch)"

    def test_initial_checkout(self, git_repo) -> None:
        metadata = PostCheckoutDetector(GitClient(git_repo.path)).detect(NULL_SHA, git_repo.head(), 1)

        assert metadata.is_relevant_transition is False
        assert metadata.reason == "Initial checkout (no previous HEAD)"

    def test_new_branch(self, git_repo) -> None:
        head = git_repo.head()
        git_repo.checkout("-b", "topic")

        metadata = PostCheckoutDetector(GitClient(git_repo.path)).detect(head, head, 1)

        assert metadata.is_relevant_transition is False
        assert metadata.is_new_branch is True
        assert metadata.branch_name == "topic"

    def test_detached_head(self, git_repo) -> None:
        first = git_repo.head()
        second = git_repo.commit("second", {"docs/a.md": "a\n"})
        git_repo.checkout("--detach", first)

        metadata = PostCheckoutDetector(GitClient(git_repo.path)).detect(second, first, 1)

        assert metadata.is_relevant_transition is True
        assert metadata.branch_name is None
        assert metadata.reason == "Checked out detached HEAD"
