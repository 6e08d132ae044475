"""Search-experience orchestration for a data catalog: tables, users, dashboards."""
