"""
Test package for the CertQuote pricing service.

- unit: pricing engine, services and API endpoint tests
"""
