"""
The MODEL layer contains pure data structures and business logic.
It has NO knowledge of the GUI (Qt) or the transport (HTTP).
It deals with coordinate spaces, plot geometry, calibration and I/O.
"""
