from __future__ import annotations

from tasktrack.models.task import Task

from .board import TaskBoard

RULE = "-" * 60


def format_created_at(task: Task) -> str:
    # e.g. "Oct 19, 2026, 09:05 AM"
    return task.created_at.astimezone().strftime("%b %d, %Y, %I:%M %p")


def render_card(task: Task, *, completing: bool) -> list[str]:
    action = "[...]" if completing else "[Done]"
    lines = [f"  #{task.id:<4} {task.title}  {action}"]
    if task.description:
        lines.append(f"        {task.description}")
    lines.append(f"        {format_created_at(task)}")
    return lines


def render_list(board: TaskBoard) -> list[str]:
    if board.is_loading:
        return ["  Loading your tasks..."]
    if not board.tasks:
        return [
            "  No tasks yet!",
            "  Start by creating your first task above. Keep track of what needs to be done!",
        ]
    lines = [f"Your Tasks ({len(board.tasks)})"]
    for task in board.tasks:
        lines.extend(render_card(task, completing=board.is_completing(task.id)))
    return lines


def render_form(board: TaskBoard) -> list[str]:
    if board.is_submitting:
        button = "[Creating...]"
    elif board.can_submit:
        button = "[Add Task]"
    else:
        button = "[Add Task] (disabled)"
    return [
        "Add New Task",
        f"  Task Title *: {board.title or '<empty>'}",
        f"  Description:  {board.description or '<empty>'}",
        f"  {button}",
    ]


def render_board(board: TaskBoard) -> str:
    """Render the whole view as plain text, banners first."""
    lines = ["Todo App", RULE]
    if board.error:
        lines.append(f"! {board.error}  (type 'dismiss' to close)")
    success = board.success_message
    if success:
        lines.append(f"* {success}")
    lines.extend(render_form(board))
    lines.append(RULE)
    lines.extend(render_list(board))
    lines.append(RULE)
    return "\n".join(lines)


__all__ = ["render_board", "render_card", "render_form", "render_list", "format_created_at"]
