import pytest

from grove.config import AppConfig
from grove.events import ClearFeedback, Key, Mouse, Resize
from grove.exceptions import NotARepositoryError, TerminalError
from grove.models import BRANCH_ACTIONS, StatusSummary
from grove.panes import FeedbackKind, Tab
from grove.screens import CANCEL, FormField
from grove.session import Modal, Session, Snapshot
from grove.terminal import OpenResult, cd_command

from tests.utils import (
    LIST,
    PRUNE,
    PRUNE_DRY_RUN,
    FakeGit,
    FakeOpener,
    RecordingScheduler,
    list_output,
    make_session,
    press,
    type_text,
)


def remove_args(path, force: bool = False) -> list[str]:
    return ["git", "worktree", "remove", *(["--force"] if force else []), str(path)]


def test_refresh_loads_snapshot(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)

    paths = [record.path for record in session.worktrees]
    assert paths == [str(fake_repo.root), str(fake_repo.feature), str(fake_repo.hotfix)]
    assert session.worktrees[1].status == StatusSummary(modified=1, untracked=1)
    assert session.worktrees[2].status == StatusSummary()
    assert session.load_error is None
    assert [item.title for item in session.item_list.items] == ["repo", "feature", "hotfix"]
    assert session.details.item.id == str(fake_repo.root)


def open_picker(session: Session) -> None:
    press(session, "enter")


def open_form(session: Session) -> None:
    press(session, "n")


def open_confirm(session: Session) -> None:
    press(session, "enter", "down", "down", "enter")


@pytest.mark.parametrize(
    ("setup", "modal"),
    [
        (lambda session: None, Modal.NONE),
        (open_picker, Modal.ACTION_PICKER),
        (open_form, Modal.CREATION_FORM),
        (open_confirm, Modal.CONFIRM_DIALOG),
    ],
)
def test_interrupt_quits_at_any_depth(fake_repo, fake_git, setup, modal) -> None:
    session = make_session(fake_git, fake_repo.root)
    setup(session)
    assert session.active_modal == modal

    press(session, "ctrl+c")

    assert session.quitting
    assert session.target_path is None
    assert session.render().plain == "Goodbye!"


def test_q_only_quits_from_normal_state(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)
    open_form(session)

    type_text(session, "q")
    assert not session.quitting
    assert session.create_form.branch == "q"

    press(session, "escape", "q")
    assert session.quitting


def test_delete_end_to_end(fake_repo, fake_git) -> None:
    remaining = [line for line in fake_repo.list_lines() if str(fake_repo.feature) not in line]
    fake_git.set(
        remove_args(fake_repo.feature),
        "",
        effect=lambda: fake_git.set(LIST, list_output(*remaining)),
    )
    session = make_session(fake_git, fake_repo.root)

    press(session, "j", "enter", "down", "down", "enter")
    assert session.active_modal == Modal.CONFIRM_DIALOG
    assert session.confirm.selected == CANCEL
    press(session, "y")

    removals = fake_git.calls_for("git", "worktree", "remove")
    assert removals == [(tuple(remove_args(fake_repo.feature)), str(fake_repo.root))]
    assert str(fake_repo.feature) not in [record.path for record in session.worktrees]
    assert session.active_modal == Modal.NONE
    assert session.feedback.kind == FeedbackKind.SUCCESS
    assert session.feedback.message == "Removed worktree: feature"


def test_delete_with_force(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)

    press(session, "j", "enter", "down", "down", "enter", "space", "y")

    assert fake_git.calls_for("git", "worktree", "remove") == [
        (tuple(remove_args(fake_repo.feature, force=True)), str(fake_repo.root))
    ]


def test_failed_delete_keeps_snapshot(fake_repo, fake_git) -> None:
    fake_git.set(
        remove_args(fake_repo.feature),
        f"fatal: '{fake_repo.feature}' contains modified or untracked files, use --force to delete it\n",
        returncode=128,
    )
    session = make_session(fake_git, fake_repo.root)
    before = session.worktrees
    list_calls = len(fake_git.calls_for(*LIST))

    press(session, "j", "enter", "down", "down", "enter", "y")

    assert session.worktrees == before
    assert len(fake_git.calls_for(*LIST)) == list_calls
    assert session.feedback.kind == FeedbackKind.ERROR
    assert session.feedback.message.startswith("Failed to remove worktree: fatal:")


def test_cancelled_delete_runs_nothing(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)

    press(session, "j", "enter", "down", "down", "enter", "n")

    assert fake_git.calls_for("git", "worktree", "remove") == []
    assert session.active_modal == Modal.NONE
    assert not session.confirm.visible


def test_prune_shows_preview_and_prunes(fake_repo, fake_git) -> None:
    fake_git.set(PRUNE_DRY_RUN, "Removing worktrees/old: gitdir file points to non-existent location\n")
    session = make_session(fake_git, fake_repo.root)

    press(session, "p")
    assert session.active_modal == Modal.CONFIRM_DIALOG
    assert "Removing worktrees/old" in session.confirm.message
    assert session.confirm.confirm_label == "Prune"
    assert not session.confirm.force_option
    assert fake_git.calls_for(*PRUNE)[-1][0] == tuple(PRUNE_DRY_RUN)

    press(session, "left", "enter")

    assert fake_git.calls_for(*PRUNE)[-1][0] == tuple(PRUNE)
    assert session.feedback.message == "Pruned stale worktrees"


def test_create_jumps_to_new_worktree(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)

    press(session, "n")
    type_text(session, "topic")
    press(session, "tab")
    type_text(session, "topic-wt")
    press(session, "enter")

    target = str(fake_repo.root / "topic-wt")
    assert fake_git.calls_for("git", "worktree", "add") == [
        (("git", "worktree", "add", "-b", "topic", target), str(fake_repo.root))
    ]
    assert session.quitting
    assert session.target_path == target
    assert session.render().plain == ""


def test_create_in_place_uses_worktree_dir(fake_repo, fake_git, tmp_path) -> None:
    config = AppConfig(jump_on_create=False, worktree_dir=str(tmp_path / "wts"))
    session = make_session(fake_git, fake_repo.root, config=config)
    list_calls = len(fake_git.calls_for(*LIST))

    press(session, "n")
    type_text(session, "topic")
    press(session, "tab")
    type_text(session, "topic")
    press(session, "enter")

    assert fake_git.calls_for("git", "worktree", "add")[0][0][-1] == str(tmp_path / "wts" / "topic")
    assert not session.quitting
    assert len(fake_git.calls_for(*LIST)) == list_calls + 1
    assert session.feedback.message == "Created worktree: topic"


def test_create_absolute_path_is_kept(fake_repo, fake_git, tmp_path) -> None:
    config = AppConfig(worktree_dir=str(tmp_path / "wts"))
    session = make_session(fake_git, fake_repo.root, config=config)

    assert session.resolve_path(str(tmp_path / "elsewhere")) == str(tmp_path / "elsewhere")


def test_failed_create_reports_error(fake_repo, fake_git) -> None:
    target = str(fake_repo.root / "feature")
    fake_git.set(
        ["git", "worktree", "add", "-b", "feature", target],
        "fatal: a branch named 'feature' already exists\n",
        returncode=255,
    )
    session = make_session(fake_git, fake_repo.root)

    press(session, "n")
    type_text(session, "feature")
    press(session, "tab")
    type_text(session, "feature")
    press(session, "enter")

    assert not session.quitting
    assert session.feedback.kind == FeedbackKind.ERROR
    assert session.feedback.message == "Failed to create worktree: fatal: a branch named 'feature' already exists"


def test_form_validation_stays_local(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)

    press(session, "n", "enter")

    assert session.active_modal == Modal.CREATION_FORM
    assert session.create_form.error == "Branch name is required"
    assert not session.feedback.visible
    assert fake_git.calls_for("git", "worktree", "add") == []


def test_not_a_repository_view(tmp_path) -> None:
    fake = FakeGit()
    session = make_session(fake, tmp_path / "missing")

    assert isinstance(session.load_error, NotARepositoryError)
    assert session.worktrees == ()
    assert fake.calls == []

    press(session, "n")
    assert session.active_modal == Modal.NONE
    press(session, "p")
    assert session.active_modal == Modal.NONE
    press(session, "enter")
    assert session.active_modal == Modal.NONE
    assert "Not a git repository" in session.render().plain


def test_load_failure_clears_previous_snapshot(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)
    fake_git.set(LIST, "fatal: not a git repository\n", returncode=128)

    press(session, "r")

    assert session.worktrees == ()
    assert session.item_list.items == ()
    assert session.feedback.kind == FeedbackKind.ERROR
    assert "Failed to load worktrees" in session.render().plain


def test_refresh_key_reports(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)

    press(session, "r")

    assert session.feedback.kind == FeedbackKind.INFO
    assert session.feedback.message == "Refreshed 3 worktrees"


def test_tabs_swap_items(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)

    press(session, "tab")
    assert session.active_tab == Tab.BRANCHES
    assert [item.title for item in session.item_list.items] == ["main", "feature", "experiment"]

    press(session, "tab")
    assert session.active_tab == Tab.SETTINGS
    assert session.item_list is None
    assert "Theme colors" in session.render().plain
    press(session, "enter")
    assert session.active_modal == Modal.NONE

    press(session, "tab")
    assert session.active_tab == Tab.WORKTREES
    press(session, "shift+tab")
    assert session.active_tab == Tab.SETTINGS


def test_branch_action_prefills_form(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)

    press(session, "tab", "j", "enter")
    assert session.picker.actions == BRANCH_ACTIONS
    press(session, "enter")

    form = session.create_form
    assert session.active_modal == Modal.CREATION_FORM
    assert form.branch == "feature"
    assert form.create_branch is False
    assert form.focused == FormField.PATH

    type_text(session, "../feature-wt")
    press(session, "enter")
    target = str(fake_repo.root.parent / "feature-wt")
    assert fake_git.calls_for("git", "worktree", "add")[0][0] == ("git", "worktree", "add", target, "feature")


def test_branch_action_needs_a_repository(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)
    press(session, "tab", "j", "enter")
    session.snapshot = Snapshot(
        branches=session.snapshot.branches, error=NotARepositoryError(str(fake_repo.root))
    )

    press(session, "enter")

    assert session.active_modal == Modal.NONE
    assert not session.create_form.visible


def test_lower_modal_never_shows_over_higher(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)
    open_confirm(session)

    session._show_create_form(branch="topic")

    assert session.active_modal == Modal.CONFIRM_DIALOG
    assert session.confirm.visible
    assert not session.create_form.visible


def test_n_ignored_on_branches_tab(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)

    press(session, "tab", "n")

    assert session.active_modal == Modal.NONE


def test_copy_path_action(fake_repo, fake_git) -> None:
    scheduler = RecordingScheduler()
    session = make_session(fake_git, fake_repo.root, scheduler=scheduler)

    press(session, "j", "enter", "down", "enter")

    assert session.feedback.kind == FeedbackKind.INFO
    assert session.feedback.message == f"Copy: {cd_command(str(fake_repo.feature))}"
    assert scheduler.scheduled == [(3.0, ClearFeedback(session.feedback.generation))]

    session.dispatch(scheduler.scheduled[0][1])
    assert not session.feedback.visible


def test_stale_clear_keeps_newer_message(fake_repo, fake_git) -> None:
    scheduler = RecordingScheduler()
    session = make_session(fake_git, fake_repo.root, scheduler=scheduler)

    press(session, "r", "r")
    first, second = (event for _, event in scheduler.scheduled)

    session.dispatch(first)
    assert session.feedback.visible
    session.dispatch(second)
    assert not session.feedback.visible


@pytest.mark.parametrize(
    ("opener", "kind"),
    [
        (FakeOpener(OpenResult(True, "terminal", "Opened terminal", "cd x")), FeedbackKind.SUCCESS),
        (FakeOpener(OpenResult(False, "cd_command", "Use this command to switch: cd x", "cd x")), FeedbackKind.INFO),
        (FakeOpener(error=TerminalError("boom")), FeedbackKind.ERROR),
    ],
)
def test_open_action(fake_repo, fake_git, opener, kind) -> None:
    session = make_session(fake_git, fake_repo.root, opener=opener)

    press(session, "j", "enter", "enter")

    assert opener.opened == [str(fake_repo.feature)]
    assert session.feedback.kind == kind


def test_pointer_events(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)
    session.dispatch(Resize(100, 30))

    assert session.item_list.width == 40
    assert session.item_list.height == 24
    assert session.details.width == 59

    session.dispatch(Mouse(5, 5))
    assert session.item_list.selected == 2
    assert session.details.item.id == str(fake_repo.hotfix)

    session.dispatch(Mouse(70, 5))
    assert session.item_list.selected == 2

    _, start, _ = session.tabs.positions()[1]
    session.dispatch(Mouse(start + 1, 0))
    assert session.active_tab == Tab.BRANCHES


def test_pointer_ignored_while_modal_open(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)
    session.dispatch(Resize(100, 30))
    press(session, "enter")

    session.dispatch(Mouse(5, 4))

    assert session.item_list.selected == 0
    assert session.active_modal == Modal.ACTION_PICKER


def test_render_frame(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)
    session.dispatch(Resize(100, 30))

    frame = session.render().plain.split("\n")

    assert len(frame) == 30
    assert all(len(line) <= 100 for line in frame)
    assert "Worktrees" in frame[0]
    assert "feature" in "\n".join(frame)
    assert "q: quit" in frame[-1]

    press(session, "j", "enter")
    assert "Actions: feature" in session.render().plain


def test_render_without_resize_uses_default_size(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)

    frame = session.render().plain.split("\n")

    assert len(frame) == 24


def test_events_after_quit_are_ignored(fake_repo, fake_git) -> None:
    session = make_session(fake_git, fake_repo.root)
    press(session, "q")

    session.dispatch(Key.parse("n"))

    assert session.active_modal == Modal.NONE
    assert session.quitting
