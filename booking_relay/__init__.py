"""Cal.com booking relay: validates booking requests and forwards them upstream."""
