"""Report sections, each a `check(host, resolver, ctx, settings)` function."""
