# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the animal rescue case API.

This package holds the case core: lifecycle, matching, catalog reads and
the access policy. It raises domain errors and knows nothing about HTTP.
"""
