"""Pure domain model: money, sales, permissions and subscriptions."""
