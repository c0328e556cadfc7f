"""MariaDB connection, quoting and introspection helpers."""
