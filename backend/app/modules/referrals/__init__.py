"""Referral codes and the users they brought in."""
