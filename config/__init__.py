# config package - authoritative source for all isochrone client configuration.
#
# Sub-modules:
#   api_config.py    - routing service endpoint, authentication, request headers
#   batch_params.py  - isochrone ranges, retry and rate-limit constants, line colours
