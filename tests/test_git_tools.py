"""Tests for git argument building and handler output selection."""

import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from tooldjinn.core.configs import ToolSettings
from tooldjinn.core.session import Session
from tooldjinn.core.types import CommandResult
from tooldjinn.decoders.log import LOG_FIELD_SEPARATOR, LOG_PRETTY_FORMAT, LOG_RECORD_SEPARATOR
from tooldjinn.tools import git_tools
from tooldjinn.tools.registry import dispatch, new_sessions
from tooldjinn.tools.arguments import (
    GitBlameRequest,
    GitBranchOverviewRequest,
    GitConflictsRequest,
    GitDiffRequest,
    GitLogRequest,
    GitShowRequest,
    GitStatusRequest,
)


def make_result(stdout="", stderr="", exit_code=0):
    return CommandResult(
        stdout=stdout,
        stderr=stderr,
        exit_code=exit_code,
        duration_ms=1,
        working_directory=Path("/repo"),
    )


class TestArgumentBuilders(unittest.TestCase):

    def test_status_args(self):
        request = GitStatusRequest.from_arguments(
            {"include_ignored": True, "show_stash": True, "paths": ["src"]}
        )
        self.assertEqual(
            git_tools.build_status_args(request),
            [
                "status", "--porcelain=2", "--branch", "--no-renames", "--no-color",
                "--ignored", "--show-stash", "--", "src",
            ],
        )

    def test_diff_defaults(self):
        request = GitDiffRequest.from_arguments({})
        self.assertEqual(
            git_tools.build_diff_args(request), ["diff", "--no-color", "--stat", "--patch"]
        )

    def test_diff_options(self):
        request = GitDiffRequest.from_arguments({
            "staged": True,
            "context": 5,
            "ignore_whitespace": "all",
            "word_diff": "porcelain",
            "revision_range": "HEAD~2..HEAD",
            "include_patch": False,
            "paths": ["a.py"],
        })
        self.assertEqual(
            git_tools.build_diff_args(request),
            [
                "diff", "--no-color", "--cached", "-U5", "--ignore-all-space",
                "--word-diff=porcelain", "HEAD~2..HEAD", "--stat", "--", "a.py",
            ],
        )

    def test_diff_without_stat_or_patch(self):
        request = GitDiffRequest.from_arguments({"include_stat": False, "include_patch": False})
        self.assertEqual(git_tools.build_diff_args(request)[-1], "--no-patch")

    def test_log_args(self):
        request = GitLogRequest.from_arguments({
            "revision": "main",
            "max_entries": 5,
            "author": "Ada",
            "grep": "fix",
            "since": "2 weeks ago",
            "until": "yesterday",
            "merge_filter": "no-merges",
            "paths": ["src"],
        })
        self.assertEqual(
            git_tools.build_log_args(request),
            [
                "log", "--no-color", f"--pretty=format:{LOG_PRETTY_FORMAT}", "main", "-n", "5",
                "--author=Ada", "--grep=fix", "--since=2 weeks ago", "--until=yesterday",
                "--no-merges", "--", "src",
            ],
        )

    def test_branch_args(self):
        request = GitBranchOverviewRequest.from_arguments({
            "scope": "remote", "merge_filter": "merged", "contains": "abc", "sort_by": "name",
        })
        args = git_tools.build_branch_args(request)
        self.assertEqual(args[:2], ["branch", "--no-color"])
        self.assertTrue(args[2].startswith("--format="))
        self.assertEqual(args[3:], ["--remotes", "--merged", "--contains=abc", "--sort=refname"])

    def test_branch_default_sort(self):
        args = git_tools.build_branch_args(GitBranchOverviewRequest.from_arguments({}))
        self.assertEqual(args[-1], "--sort=-committerdate")
        self.assertNotIn("--all", args)

    def test_branch_format_uses_track_atom(self):
        args = git_tools.build_branch_args(
            GitBranchOverviewRequest.from_arguments({"sort_by": "ahead-behind"})
        )
        self.assertIn("%(upstream:track,nobracket)", args[2])
        self.assertNotIn("%(ahead)", args[2])
        self.assertEqual(args[-1], "--sort=refname")

    def test_show_args(self):
        request = GitShowRequest.from_arguments({
            "git_object": "v1.0", "include_patch": False, "include_stat": True, "pretty": "oneline",
        })
        self.assertEqual(
            git_tools.build_show_args(request),
            ["show", "--no-color", "--stat", "--no-patch", "--pretty=oneline", "v1.0"],
        )

    def test_blame_args(self):
        request = GitBlameRequest.from_arguments({"file": "a.py", "start_line": 3, "end_line": 9})
        self.assertEqual(
            git_tools.build_blame_args(request),
            ["blame", "--line-porcelain", "--date=iso", "HEAD", "-L", "3,9", "--", "a.py"],
        )

    def test_blame_single_bound(self):
        start_only = GitBlameRequest.from_arguments({"file": "a.py", "start_line": 4})
        self.assertIn("4,4", git_tools.build_blame_args(start_only))

        end_only = GitBlameRequest.from_arguments({"file": "a.py", "end_line": 7, "revision": "v2"})
        args = git_tools.build_blame_args(end_only)
        self.assertIn("1,7", args)
        self.assertEqual(args[3], "v2")

    def test_conflict_args(self):
        request = GitConflictsRequest.from_arguments({"paths": ["src"]})
        self.assertEqual(git_tools.build_conflict_args(request), ["ls-files", "-u", "--", "src"])


@patch("tooldjinn.tools.git_tools.run_command")
class TestHandlers(unittest.TestCase):

    def setUp(self):
        self.session = Session(family="git")
        self.settings = ToolSettings()

    def test_status_summary_and_raw(self, run_command):
        raw = "# branch.head main\n1 M. N... 100644 100644 100644 abc abc file.txt\n"
        run_command.return_value = make_result(stdout=raw)

        response = git_tools.git_status(GitStatusRequest.from_arguments({}), self.session, self.settings)

        self.assertFalse(response.is_error)
        self.assertIn("    - file.txt [Modified]", response.text)
        self.assertIn("--- git status (porcelain v2) ---", response.text)
        binary, args, working_directory = run_command.call_args[0]
        self.assertEqual(binary, "git")
        self.assertEqual(args[0], "status")
        self.assertIsNone(working_directory)

    def test_status_clean(self, run_command):
        run_command.return_value = make_result(stdout="")
        response = git_tools.git_status(GitStatusRequest.from_arguments({}), self.session, self.settings)
        self.assertIn("--- stdout ---\nWorking tree appears clean.", response.text)

    def test_custom_binary_used(self, run_command):
        run_command.return_value = make_result()
        settings = ToolSettings(git_binary="/opt/git/bin/git")
        git_tools.git_list_conflicts(GitConflictsRequest.from_arguments({}), self.session, settings)

        self.assertEqual(run_command.call_args[0][0], "/opt/git/bin/git")
        self.assertIn("Command: /opt/git/bin/git ls-files -u", self.session.get().formatted_text)

    def test_diff_runs_numstat_then_patch(self, run_command):
        run_command.side_effect = [
            make_result(stdout="3\t1\tsrc/a.ts\n"),
            make_result(stdout="diff --git a/src/a.ts b/src/a.ts\n+new line\n"),
        ]
        response = git_tools.git_diff(
            GitDiffRequest.from_arguments({"paths": ["src"]}), self.session, self.settings
        )

        self.assertEqual(run_command.call_count, 2)
        numstat_args = run_command.call_args_list[0][0][1]
        self.assertEqual(numstat_args, ["diff", "--no-color", "--numstat", "--", "src"])

        stored = self.session.get().formatted_text
        self.assertIn("Diff summary:\n  Files changed: 1", stored)
        self.assertIn("\n\n---\n\ndiff --git a/src/a.ts", stored)
        self.assertIn("Command: git diff --no-color --stat --patch -- src", response.text)

    def test_diff_without_changes(self, run_command):
        run_command.return_value = make_result()
        response = git_tools.git_diff(GitDiffRequest.from_arguments({}), self.session, self.settings)
        self.assertIn("No differences detected.", response.text)

    def test_diff_stat_and_patch_disabled_skips_numstat(self, run_command):
        run_command.return_value = make_result()
        git_tools.git_diff(
            GitDiffRequest.from_arguments({"include_stat": False, "include_patch": False}),
            self.session,
            self.settings,
        )
        self.assertEqual(run_command.call_count, 1)

    def test_log_summary(self, run_command):
        record = LOG_FIELD_SEPARATOR.join(["f" * 40, "Ada", "now", "Fix", ""]) + LOG_RECORD_SEPARATOR
        run_command.return_value = make_result(stdout=record)

        git_tools.git_log(GitLogRequest.from_arguments({"max_entries": 3}), self.session, self.settings)

        stored = self.session.get().formatted_text
        self.assertIn("Recent commits (showing up to 3):", stored)
        self.assertIn(f"1. {'f' * 12} | now | Ada", stored)

    def test_fallback_messages(self, run_command):
        run_command.return_value = make_result()
        cases = [
            (git_tools.git_log, GitLogRequest.from_arguments({}),
             "No commits match the provided filters."),
            (git_tools.git_branch_overview, GitBranchOverviewRequest.from_arguments({}),
             "No branches match the requested filters."),
            (git_tools.git_blame_segment, GitBlameRequest.from_arguments({"file": "a.py"}),
             "No blame information available for the specified range."),
            (git_tools.git_list_conflicts, GitConflictsRequest.from_arguments({}),
             "No merge conflicts detected in the working tree."),
        ]
        for handler, request, message in cases:
            with self.subTest(handler=handler.__name__):
                response = handler(request, self.session, self.settings)
                self.assertIn(f"--- stdout ---\n{message}", response.text)

    def test_show_passes_raw_output(self, run_command):
        run_command.return_value = make_result(stdout="commit abc\nAuthor: Ada\n")
        git_tools.git_show(
            GitShowRequest.from_arguments({"git_object": "HEAD"}), self.session, self.settings
        )
        self.assertIn("--- stdout ---\ncommit abc\nAuthor: Ada", self.session.get().formatted_text)

    def test_failure_keeps_stderr(self, run_command):
        run_command.return_value = make_result(
            stderr="fatal: ambiguous argument 'nope'\n", exit_code=128
        )
        response = git_tools.git_log(
            GitLogRequest.from_arguments({"revision": "nope"}), self.session, self.settings
        )

        self.assertTrue(response.is_error)
        self.assertIn("Exit code: 128", response.text)
        self.assertIn("fatal: ambiguous argument 'nope'", response.text)

    def test_working_directory_forwarded(self, run_command):
        run_command.return_value = make_result()
        git_tools.git_status(
            GitStatusRequest.from_arguments({"working_directory": "/tmp/repo"}),
            self.session,
            self.settings,
        )
        self.assertEqual(run_command.call_args[0][2], "/tmp/repo")

    def test_branch_overview_orders_by_divergence(self, run_command):
        run_command.return_value = make_result(stdout="\n".join([
            "*\tmain\t1111111\tnow\t\t\tAda\tx",
            " \ttopic\t2222222\tnow\torigin/topic\tahead 3\tAda\ty",
        ]))
        git_tools.git_branch_overview(
            GitBranchOverviewRequest.from_arguments({"sort_by": "ahead-behind"}),
            self.session,
            self.settings,
        )
        stored = self.session.get().formatted_text
        self.assertLess(stored.index("  topic | "), stored.index("* main | "))
        self.assertIn("tracking origin/topic (ahead 3, behind 0)", stored)


@patch("tooldjinn.tools.git_tools.run_command")
class TestOptionLikeRevisions(unittest.TestCase):

    CASES = [
        ("git_diff", {"revision_range": "--output=/tmp/written.txt", "include_stat": False}),
        ("git_log", {"revision": "--output=/tmp/written.txt"}),
        ("git_show", {"git_object": "--output=/tmp/written.txt"}),
        ("git_blame_segment", {"file": "a.py", "revision": "--contents=/etc/passwd"}),
        ("git_branch_overview", {"contains": "--delete"}),
    ]

    def test_rejected_before_spawning(self, run_command):
        for tool, arguments in self.CASES:
            with self.subTest(tool=tool):
                response = dispatch(tool, arguments, new_sessions(), ToolSettings())
                self.assertTrue(response.is_error)
                self.assertTrue(response.text.startswith("Command failed: Invalid value for "))
                self.assertIn("must not start with '-'", response.text)
        run_command.assert_not_called()


@unittest.skipUnless(shutil.which("git"), "git is not installed")
class TestBranchOverviewRealRepository(unittest.TestCase):
    """Runs the real git binary so the format string is checked by git itself."""

    def setUp(self):
        self.repo = tempfile.mkdtemp()
        self._git("init", "-q")
        self._git("symbolic-ref", "HEAD", "refs/heads/main")
        self._git("commit", "-q", "--allow-empty", "-m", "first")
        self._git("branch", "--track", "feature", "main")
        self._git("commit", "-q", "--allow-empty", "-m", "second")

    def tearDown(self):
        shutil.rmtree(self.repo, ignore_errors=True)

    def _git(self, *args):
        subprocess.run(
            [
                "git",
                "-c", "user.name=Ada",
                "-c", "user.email=ada@example.com",
                "-c", "commit.gpgsign=false",
                *args,
            ],
            cwd=self.repo,
            check=True,
            capture_output=True,
        )

    def _overview(self, **arguments):
        sessions = new_sessions()
        response = dispatch(
            "git_branch_overview",
            {"working_directory": self.repo, **arguments},
            sessions,
            ToolSettings(),
        )
        return response, sessions["git"].get().formatted_text

    def test_branches_are_decoded(self):
        response, stored = self._overview()

        self.assertFalse(response.is_error, response.text)
        self.assertIn("Exit code: 0", stored)
        self.assertIn("Branch overview (local):", stored)
        self.assertIn("* main | ", stored)
        self.assertIn("    no upstream | last author: Ada", stored)
        self.assertIn("    tracking main (ahead 0, behind 1) | last author: Ada", stored)
        self.assertIn("    last commit: second", stored)

    def test_ahead_behind_sort_is_accepted_by_git(self):
        response, stored = self._overview(sort_by="ahead-behind")

        self.assertFalse(response.is_error, response.text)
        self.assertLess(stored.index("  feature | "), stored.index("* main | "))


if __name__ == "__main__":
    unittest.main()
