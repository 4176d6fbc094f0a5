"""Email alerts for new exam notices on the college website."""
