"""Article generation pipeline: stage contract, registry, and report building."""
