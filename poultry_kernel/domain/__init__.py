"""Pure domain core: clock, value objects, DTOs and invariant guards."""
