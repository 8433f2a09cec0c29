"""deadline-io: deadline-bounded file I/O."""
