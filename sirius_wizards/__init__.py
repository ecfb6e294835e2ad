"""
sirius_wizards -- Step-based workflows for data feeds and reports.

A wizard type (feed or report) declares its ordered steps and status
vocabulary. Wizard instances persist typed per-step state; services in
``sirius_wizards.services`` drive validation, processing, and report
generation against injected stores.
"""
