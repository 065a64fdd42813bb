from app.models.network import (  # noqa: F401
    DistributionBox,
    ElementStatus,
    MainSplitter,
    NetworkElementType,
    OltDevice,
    OltTechnology,
    PonCustomer,
    SubSplitter,
    X2Terminal,
)
