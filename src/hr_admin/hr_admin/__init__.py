"""HR administration package.

This package is organized by feature modules (access, lifecycle, records, payroll, ...)
with a thin Flask controller layer and service/repository layers. The access and
lifecycle modules form the authorization core and perform no I/O.
"""
