from django import forms


class LoginForm(forms.Form):
    username = forms.CharField(max_length=255)
    password = forms.CharField(widget=forms.PasswordInput, strip=False)


class ChangePasswordForm(forms.Form):
    current_password = forms.CharField(widget=forms.PasswordInput, strip=False)
    new_password = forms.CharField(widget=forms.PasswordInput, strip=False, min_length=12, max_length=128)
    new_password_check = forms.CharField(widget=forms.PasswordInput, strip=False)

    def passwords_match(self):
        return self.cleaned_data["new_password"] == self.cleaned_data["new_password_check"]
