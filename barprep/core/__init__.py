"""Cross-cutting helpers shared by the API and service layers."""
