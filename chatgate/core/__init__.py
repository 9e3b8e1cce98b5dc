"""Admission control core: authentication, usage metering and admin sessions."""
