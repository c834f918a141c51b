"""HTTP API for payroll and invoice generation."""
