"""Payment lifecycle orchestration for processor-hosted checkout."""
