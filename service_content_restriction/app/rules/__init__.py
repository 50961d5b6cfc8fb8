"""
Restriction rules package.

Defines the restriction rule and decision models and the evaluator that
turns a viewer, a post's ordered rules and purchase records into an
allow/deny decision with a denial message.

Modules of interest:
- models: Data classes for rules, viewers, decisions, posts and payments,
  plus the HTTP request/response models.
- evaluator: Shortcut checks, ordered rule evaluation and message rendering.
"""
