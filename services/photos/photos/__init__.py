"""Photo pipelines: derive resized image variants and clean them up again."""
