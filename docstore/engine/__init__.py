"""docstore Engine — errors, registry, configuration and logging."""
