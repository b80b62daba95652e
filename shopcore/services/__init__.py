# Services Module: money helpers, currency conversion, promotions.
# Import submodules directly (shopcore.services.currency, ...).
