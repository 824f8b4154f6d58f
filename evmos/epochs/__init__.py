"""Time-based epochs: types, in-memory context, keeper, genesis handling and module wrappers."""