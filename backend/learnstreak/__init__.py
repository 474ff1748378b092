"""Learning-streak (offensive) engine service."""
