"""Infrastructure layer — record files, templates, matching, graph engine.

This layer depends on the domain layer, config models, and third-party
libs (Jinja2, NetworkX). It must never import from services, commands,
or output. The service layer bridges between domain models and
infrastructure.
"""
