ACCESS_STATES = {"pending", "approved", "denied"}

# decision link ?action= value -> resulting status
DECISION_ACTIONS = {"approve": "approved", "deny": "denied"}
