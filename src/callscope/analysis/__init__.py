"""Call graph model, selection and grouping."""
