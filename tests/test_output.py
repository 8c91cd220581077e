"""Tests for clipboard access, selection reading and text replacement."""

import subprocess
import sys
from unittest.mock import MagicMock, call, patch

import pytest

from textenhancer.core.input.selection import ClipboardSelectionProvider
from textenhancer.core.output.clipboard import Clipboard, clipboard_commands
from textenhancer.core.output.text_output import TextOutputController


@pytest.fixture
def linux_clipboard():
    with patch("textenhancer.core.output.clipboard.get_platform", return_value="linux"):
        yield Clipboard(keyboard=MagicMock())


class FakeClipboard:
    """In-memory clipboard; copy_selection copies whatever the focused app has selected."""

    available = True

    def __init__(self, content="", selection=None):
        self.content = content
        self.selection = selection
        self.keyboard = MagicMock()
        self.pasted = []

    def get_text(self):
        return self.content

    def set_text(self, text):
        self.content = text
        return True

    def copy_selection(self):
        if self.selection is not None:
            self.content = self.selection
        return self.content

    def paste(self):
        self.pasted.append(self.content)


class TestClipboardCommands:
    @pytest.mark.parametrize(
        "system,copy_cmd",
        [("linux", "xclip"), ("macos", "pbcopy"), ("windows", "clip")],
    )
    def test_per_platform(self, system, copy_cmd):
        with patch("textenhancer.core.output.clipboard.get_platform", return_value=system):
            copy, paste = clipboard_commands()
        assert copy[0] == copy_cmd
        assert paste

    def test_unknown_platform(self):
        with patch("textenhancer.core.output.clipboard.get_platform", return_value="plan9"):
            assert clipboard_commands() is None
            assert not Clipboard(keyboard=MagicMock()).available


class TestClipboard:
    @patch("textenhancer.core.output.clipboard.subprocess.run")
    def test_get_text(self, mock_run, linux_clipboard):
        mock_run.return_value = MagicMock(returncode=0, stdout="hello")
        assert linux_clipboard.get_text() == "hello"
        assert mock_run.call_args[0][0] == ["xclip", "-selection", "clipboard", "-o"]

    @patch("textenhancer.core.output.clipboard.subprocess.run")
    def test_get_text_failure_is_empty(self, mock_run, linux_clipboard):
        mock_run.side_effect = FileNotFoundError("xclip")
        assert linux_clipboard.get_text() == ""

    @patch("textenhancer.core.output.clipboard.subprocess.run")
    def test_set_text(self, mock_run, linux_clipboard):
        assert linux_clipboard.set_text("hi")
        assert mock_run.call_args.kwargs["input"] == "hi"

    @patch("textenhancer.core.output.clipboard.subprocess.run")
    def test_set_text_failure(self, mock_run, linux_clipboard):
        mock_run.side_effect = subprocess.CalledProcessError(1, "xclip")
        assert not linux_clipboard.set_text("hi")

    def test_press_shortcut_uses_ctrl_off_macos(self, linux_clipboard):
        fake_keyboard_module = MagicMock()
        fake_pynput = MagicMock(keyboard=fake_keyboard_module)
        with patch.dict(
            sys.modules, {"pynput": fake_pynput, "pynput.keyboard": fake_keyboard_module}
        ), patch(
            "textenhancer.core.output.clipboard.get_platform", return_value="linux"
        ):
            linux_clipboard.press_shortcut("v")

        linux_clipboard.keyboard.pressed.assert_called_once_with(fake_keyboard_module.Key.ctrl)
        linux_clipboard.keyboard.tap.assert_called_once_with("v")

    def test_held_hotkey_modifiers_released_before_tap(self, linux_clipboard):
        fake_keyboard_module = MagicMock()
        Key = fake_keyboard_module.Key
        fake_pynput = MagicMock(keyboard=fake_keyboard_module)
        with patch.dict(
            sys.modules, {"pynput": fake_pynput, "pynput.keyboard": fake_keyboard_module}
        ), patch(
            "textenhancer.core.output.clipboard.get_platform", return_value="linux"
        ):
            linux_clipboard.press_shortcut("c")

        names = [c[0] for c in linux_clipboard.keyboard.mock_calls]
        released = [c.args[0] for c in linux_clipboard.keyboard.release.call_args_list]
        assert {Key.alt, Key.alt_gr, Key.shift, Key.cmd} <= set(released)
        assert Key.ctrl not in released
        assert names.index("tap") > max(i for i, n in enumerate(names) if n == "release")

    @patch("textenhancer.core.output.clipboard.time.sleep")
    def test_copy_selection(self, mock_sleep, linux_clipboard):
        with patch.object(linux_clipboard, "press_shortcut") as press, patch.object(
            linux_clipboard, "get_text", return_value="selected"
        ):
            assert linux_clipboard.copy_selection() == "selected"
        press.assert_called_once_with("c")


class TestClipboardSelectionProvider:
    def test_returns_selection_and_restores_clipboard(self):
        clipboard = FakeClipboard(content="previous", selection="teh cat")

        assert ClipboardSelectionProvider(clipboard).get_selected_text() == "teh cat"
        assert clipboard.content == "previous"

    def test_nothing_selected(self):
        clipboard = FakeClipboard(content="previous", selection=None)

        assert ClipboardSelectionProvider(clipboard).get_selected_text() is None
        assert clipboard.content == "previous"

    def test_stale_clipboard_is_not_mistaken_for_selection(self):
        clipboard = FakeClipboard(content="", selection=None)
        assert ClipboardSelectionProvider(clipboard).get_selected_text() is None

    def test_marker_does_not_linger_on_empty_clipboard(self):
        clipboard = FakeClipboard(content="", selection=None)

        ClipboardSelectionProvider(clipboard).get_selected_text()

        assert clipboard.content == ""

    def test_empty_clipboard_restored_after_selection(self):
        clipboard = FakeClipboard(content="", selection="teh cat")

        assert ClipboardSelectionProvider(clipboard).get_selected_text() == "teh cat"
        assert clipboard.content == ""

    def test_unavailable_clipboard(self):
        clipboard = FakeClipboard()
        clipboard.available = False
        assert ClipboardSelectionProvider(clipboard).get_selected_text() is None


@patch("textenhancer.core.output.text_output.time.sleep")
class TestTextOutputController:
    def test_pastes_and_restores(self, mock_sleep):
        clipboard = FakeClipboard(content="old")
        done = MagicMock()

        TextOutputController(clipboard, on_complete=done).replace("new text")

        assert clipboard.pasted == ["new text"]
        assert clipboard.content == "old"
        done.assert_called_once()

    def test_no_restore(self, mock_sleep):
        clipboard = FakeClipboard(content="old")

        TextOutputController(clipboard, restore_clipboard=False).replace("new text")

        assert clipboard.content == "new text"

    def test_types_when_clipboard_write_fails(self, mock_sleep):
        clipboard = MagicMock(available=True)
        clipboard.get_text.return_value = ""
        clipboard.set_text.return_value = False

        TextOutputController(clipboard).replace("typed")

        clipboard.keyboard.type.assert_called_once_with("typed")
        clipboard.paste.assert_not_called()

    def test_types_without_clipboard_tool(self, mock_sleep):
        clipboard = MagicMock(available=False)

        TextOutputController(clipboard).replace("typed")

        clipboard.keyboard.type.assert_called_once_with("typed")
        assert clipboard.set_text.call_args_list == []

    def test_restore_sequence(self, mock_sleep):
        clipboard = MagicMock(available=True)
        clipboard.get_text.return_value = "old"
        clipboard.set_text.return_value = True

        TextOutputController(clipboard).replace("new")

        assert clipboard.set_text.call_args_list == [call("new"), call("old")]
        clipboard.paste.assert_called_once()
