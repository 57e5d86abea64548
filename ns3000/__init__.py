# NS3000 booking backend
