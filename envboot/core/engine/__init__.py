"""Engine — ordering, planning, execution, summary."""
