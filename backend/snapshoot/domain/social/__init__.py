"""Friendship graph: edges, visibility predicates and their audit trail."""
