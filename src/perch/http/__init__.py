"""HTTP-side values the core consumes and produces: Request, Response."""
