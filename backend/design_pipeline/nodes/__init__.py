"""Pipeline stages: extraction, spatial analysis, grouping, validation, mapping."""
