"""Device OS Flasher: target device selection for firmware flashing."""
