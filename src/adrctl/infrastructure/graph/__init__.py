"""Link graph built from a record index."""
