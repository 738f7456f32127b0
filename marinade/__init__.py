"""
Custom template engines for static-site generation.

The `marinade.template` package provides the template engine abstraction and
the `~marinade.template.custom.CustomEngine` adapter that turns an entry
registered through `marinade.config.Config.add_extension` into a template
engine.
"""
