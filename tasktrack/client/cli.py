from __future__ import annotations

import sys
from typing import TextIO

from .api import TaskApiClient
from .board import TaskBoard
from .render import render_board

HELP = """commands:
  title <text>   set the task title
  desc <text>    set the task description
  add            create the task from the form
  done <id>      mark a task as completed
  refresh        re-fetch the task list
  dismiss        close the error banner
  help           show this help
  quit           exit"""


def handle_command(board: TaskBoard, line: str, out: TextIO) -> bool:
    """Apply one command to the board. Returns False when the user quits."""
    cmd, _, arg = line.strip().partition(" ")
    cmd = cmd.lower()
    if cmd in {"quit", "exit", "q"}:
        return False
    if cmd == "title":
        board.title = arg
    elif cmd == "desc":
        board.description = arg
    elif cmd == "add":
        if not board.can_submit:
            out.write("title is required\n")
            return True
        board.submit()
    elif cmd == "done":
        try:
            task_id = int(arg.strip())
        except ValueError:
            out.write("usage: done <id>\n")
            return True
        board.complete(task_id)
    elif cmd == "refresh":
        board.load()
    elif cmd == "dismiss":
        board.dismiss_error()
    elif cmd in {"help", "?"}:
        out.write(HELP + "\n")
        return True
    elif cmd:
        out.write(f"unknown command: {cmd} (try 'help')\n")
        return True
    out.write(render_board(board) + "\n")
    return True


def run(board: TaskBoard, stdin: TextIO = sys.stdin, out: TextIO = sys.stdout) -> None:
    out.write(render_board(board) + "\n")
    board.load()
    out.write(render_board(board) + "\n")
    for line in stdin:
        if not handle_command(board, line, out):
            break


def main(base_url: str) -> int:
    api = TaskApiClient(base_url)
    try:
        run(TaskBoard(api))
    except KeyboardInterrupt:
        pass
    finally:
        api.close()
    return 0


__all__ = ["handle_command", "main", "run"]
