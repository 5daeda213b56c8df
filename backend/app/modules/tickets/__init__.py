"""Support tickets for users and guests, with admin triage."""
