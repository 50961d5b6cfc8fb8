"""
Content Restriction Service package.

This package decides whether a viewer may see a post restricted to buyers
of specific products, and lists the pages a purchase unlocked. It provides:

- app.main: API surface for access checks, content filtering, receipts and health.
- app.rules: Rule and decision models, and the access evaluator.
- app.content: Content gate that swaps restricted bodies for a denial message.
- app.receipts: Receipt section and email tags listing unlocked pages.
- app.host: Collaborator protocols and the in-memory host stand-in.

Guidelines:
- The service is stateless; identity, catalog and restriction data belong to the host.
- Evaluation never raises for bad data; denial is a normal outcome.
"""
