"""
Story point reconciliation for finishing a sprint.

Three totals go in:

- ``planned``: points the team planned for the sprint (entered by the operator)
- ``in_milestone``: estimates of every issue carrying the milestone
- ``in_milestone_open``: estimates of the subset still open

and are split into points done from the plan and points done on top of it::

    done_in_sprint     = planned - in_milestone_open
    done_out_of_sprint = in_milestone - planned
    done_total         = done_in_sprint + done_out_of_sprint

Neither subtraction may go negative. A negative result means the operator
entered an impossible ``planned`` value, so it is reported rather than
clamped.

Example:
    >>> points = SprintPoints.reconcile(planned=20, in_milestone=30, in_milestone_open=5)
    >>> (points.done_in_sprint, points.done_out_of_sprint, points.done_total)
    (15, 10, 25)
"""

from dataclasses import dataclass

from decadog.exceptions import UserInputError

PLANNED_TOO_LOW = "Planned points too low: should be higher than points remaining in sprint."
PLANNED_TOO_HIGH = "Planned points too high: should be lower than all points in milestone."


@dataclass(frozen=True)
class SprintPoints:
    """Validated breakdown of a sprint's story points."""

    planned: int
    in_milestone: int
    in_milestone_open: int

    done_in_sprint: int
    done_out_of_sprint: int
    done_total: int

    @classmethod
    def reconcile(cls, planned: int, in_milestone: int, in_milestone_open: int) -> "SprintPoints":
        """Build the breakdown from the three raw totals.

        Raises:
            UserInputError: If any total is negative, or ``planned`` lies
                outside ``in_milestone_open..in_milestone``.
        """
        if min(planned, in_milestone, in_milestone_open) < 0:
            raise UserInputError("Points must not be negative.")

        done_in_sprint = planned - in_milestone_open
        if done_in_sprint < 0:
            raise UserInputError(PLANNED_TOO_LOW)

        done_out_of_sprint = in_milestone - planned
        if done_out_of_sprint < 0:
            raise UserInputError(PLANNED_TOO_HIGH)

        return cls(
            planned=planned,
            in_milestone=in_milestone,
            in_milestone_open=in_milestone_open,
            done_in_sprint=done_in_sprint,
            done_out_of_sprint=done_out_of_sprint,
            done_total=done_in_sprint + done_out_of_sprint,
        )

    @property
    def remaining(self) -> int:
        """Planned points not completed."""
        return self.planned - self.done_in_sprint

    def render_report(self, title: str) -> str:
        return (
            f"*{title}* Report\n"
            "---\n"
            f"We completed *{self.done_in_sprint}* planned points out of *{self.planned}* "
            f"({self.remaining} remaining).\n"
            f"We also did {self.done_out_of_sprint} out of sprint points.\n"
            f"In total, we finished *{self.done_total} points* of work."
        )

    def closed_title(self, title: str) -> str:
        """Milestone title recording the breakdown, e.g. ``Sprint 4 [15/20 + 10]``."""
        return f"{title} [{self.done_in_sprint}/{self.planned} + {self.done_out_of_sprint}]"
