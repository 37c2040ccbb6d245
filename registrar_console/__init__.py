"""Client engine of the registrar console: markup codec, form binding, EPP session and page state machine."""
