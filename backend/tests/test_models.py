from kaamyab.db.base import Base
from kaamyab.db import models  # noqa: F401  ensure models are loaded


def test_metadata_contains_core_tables() -> None:
    table_names = set(Base.metadata.tables.keys())
    expected = {
        "users",
        "plan_history",
        "effort_feedback",
        "user_streaks",
    }

    assert expected.issubset(table_names)


def test_effort_feedback_unique_per_task_position() -> None:
    table = Base.metadata.tables["effort_feedback"]
    unique_sets = [
        {column.name for column in constraint.columns}
        for constraint in table.constraints
        if constraint.__class__.__name__ == "UniqueConstraint"
    ]

    assert {"user_id", "task_key"} in unique_sets
