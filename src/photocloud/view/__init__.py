"""
The VIEW layer contains the Qt widgets and the 3D viewer.
It reads from the model and reports user actions to the controllers.
"""
