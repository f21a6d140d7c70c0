"""Jinja2 templates for impact reports and hook scripts."""
